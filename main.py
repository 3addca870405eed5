#!/usr/bin/env python3
"""
Project Structure Graph - Entry Point

Builds the structure graph from a scanned record file (JSON or YAML), prints
build statistics, optionally applies a search and exports the render
snapshot, or serves the graph over HTTP.
"""

import argparse
import json
import sys
from pathlib import Path

from structgraph.config import settings
from structgraph.loader import RecordLoadError
from structgraph.session import GraphSession
from structgraph.utils.logger import app_logger, setup_logging


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Project Structure Graph")
    parser.add_argument("--input", help="Record file to build the graph from (.json, .yaml, .yml)")
    parser.add_argument("--search", default="", help="Highlight nodes whose name contains this text")
    parser.add_argument("--expand", action="append", default=[], help="Expand the property nodes of a component key")
    parser.add_argument("--export", help="Write the render snapshot as JSON to this path")
    parser.add_argument("--serve", action="store_true", help="Serve the HTTP API")
    parser.add_argument("--port", type=int, default=settings.api_port, help="Port for the HTTP API")
    parser.add_argument("--host", default=settings.api_host, help="Host for the HTTP API")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")

    args = parser.parse_args()
    if args.log_level != settings.log_level:
        setup_logging(args.log_level, settings.log_file)

    if args.serve:
        import api_server

        if args.input:
            try:
                api_server.session.load_file(args.input)
            except RecordLoadError:
                sys.exit(1)
        api_server.run(args.host, args.port)
        return

    if not args.input:
        parser.error("--input is required unless --serve is given")

    session = GraphSession()
    try:
        result = session.load_file(args.input)
    except RecordLoadError:
        sys.exit(1)

    for key in args.expand:
        try:
            state = session.toggle(key)
        except KeyError:
            app_logger.warning(f"No node named {key}")
            continue
        app_logger.info(f"{key}: {state.value if state else 'no property nodes'}")

    if args.search:
        matched = session.filter(args.search)
        app_logger.info(f"Search '{args.search}' matched {len(matched)} nodes")
        for key in matched:
            app_logger.info(f"  {session.get_node(key).display_name}")

    stats = session.stats()
    app_logger.info(f"Nodes by kind: {stats['nodes']}")
    app_logger.info(f"Edges: {stats['edges']}")
    app_logger.info(f"Rendered: {stats['rendered_nodes']} nodes, {stats['rendered_edges']} edges "
                    f"({len(result.nodes)} nodes built)")

    if args.export:
        export_path = Path(args.export)
        export_path.parent.mkdir(parents=True, exist_ok=True)
        with open(export_path, "w", encoding="utf-8") as f:
            json.dump(session.render(), f, indent=2, ensure_ascii=False)
        app_logger.info(f"Wrote render snapshot to {export_path}")


if __name__ == "__main__":
    main()
