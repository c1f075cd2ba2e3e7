"""Ingestion: Fabric meta/maven access and tiny mapping files.

- fabric_client.py: URL builders and meta payload parsing
- downloader.py: staleness check, jar download and tiny extraction
- tiny_parser.py: tab-delimited record parsing into MappingTable
"""
