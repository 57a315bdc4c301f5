"""apicollect: gathers the cluster objects an XCCDF benchmark profile needs."""

__version__ = "0.1.0"
