#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tradeagg_app.config.loader import ConfigLoader
from tradeagg_app.config.sinks import parse_sink_destinations
from tradeagg_app.config.validation import ConfigValidator


def main():
    """Validate tradeagg.yaml in the given directory (default: ./config)."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)

    print(f"🔍 Validating configuration in {loader.config_dir}...")

    config = loader.merge_config()
    errors = ConfigValidator.validate_config(config)
    destinations, sink_errors = parse_sink_destinations(config.get("sinks"))
    errors.extend(sink_errors)

    if errors:
        print(f"❌ Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  • {error.field}: {error.message} (value: {error.value})")
        sys.exit(1)

    print("✅ Configuration is valid")
    for destination in destinations:
        state = "enabled" if destination.enabled else "disabled"
        print(f"  • sink {destination.name} ({destination.method.value}, {state})")


if __name__ == "__main__":
    main()
