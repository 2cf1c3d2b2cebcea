"""ledcmd: wire codec for an addressable-LED controller command protocol."""

__version__ = "0.1.0"
