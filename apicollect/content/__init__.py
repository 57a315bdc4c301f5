"""Benchmark content handling.

Submodules
----------
loader  -- waits for and parses the data stream / tailoring documents.
paths   -- turns a rule's ``ocp-api-endpoint`` directive into ResourcePaths.
profile -- resolves the selected rules and variables of a (tailored) profile.
"""
