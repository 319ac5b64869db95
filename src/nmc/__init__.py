"""nmc: install NetworkManager connection profiles under the NIC names the running kernel assigned."""

__version__ = "0.3.0"
