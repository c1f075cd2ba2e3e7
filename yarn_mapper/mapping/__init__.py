"""Mapping: version-scoped Yarn tables and the log substitution engine.

- store.py: MappingTable (full/short classes, methods, fields) and VersionRegistry
- engine.py: four fixed regex passes that rewrite intermediary names
- cli.py: map a local log file against a downloaded mappings.tiny
"""
