"""Collector package for apicollect.

Fetches the objects a scan needs from the Kubernetes API.

Submodules
----------
client    -- ClusterClient interface and its kubernetes-asyncio implementation.
nodes     -- node role index and per-node kubelet config paths.
streamers -- generic GET vs. paged, trimmed MachineConfig listing.
filter    -- single-result jq filters.
fetcher   -- sequential fetch with per-path error isolation.
"""
