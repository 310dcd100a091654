"""HL7812 modem control over AT commands, a TCP client, AT response parsing and a PCA9534 GPIO expander driver."""

__version__ = "0.1.0"
__all__ = ["at", "base", "client", "pca9534"]