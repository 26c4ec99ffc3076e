"""aptdepot: a self-hosted APT repository for uploaded .deb artifacts."""

__version__ = "0.1.0"
