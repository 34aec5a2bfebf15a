"""wolctl: Wake-on-LAN with a persistent alias directory."""

__version__ = "0.1.0"
