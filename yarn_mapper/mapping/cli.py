import sys

from yarn_mapper.config.env import get_mappings_config
from yarn_mapper.ingestion.tiny_parser import load_version
from yarn_mapper.mapping.engine import map_text
from yarn_mapper.mapping.store import VersionRegistry


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    if not args or len(args) > 2:
        print("Usage: python -m yarn_mapper.mapping.cli <version> [log file]", file=sys.stderr)
        sys.exit(2)
    version = args[0]
    if len(args) == 2:
        with open(args[1], "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    cfg = get_mappings_config()
    registry = VersionRegistry()
    if not load_version(registry, cfg.mappings_dir, version):
        print(f"Failed to find version information for {version} in {cfg.mappings_dir}", file=sys.stderr)
        sys.exit(1)
    sys.stdout.write(map_text(registry, version, text))


if __name__ == "__main__":
    main()
