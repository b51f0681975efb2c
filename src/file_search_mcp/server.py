"""STDIO JSON-lines server entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from file_search_mcp.bounding import truncate_text
from file_search_mcp.cache import CacheSweeper, QueryCache
from file_search_mcp.config import CliOverrides, ServerConfig, load_effective_config
from file_search_mcp.metrics import JsonlMetricsRecorder
from file_search_mcp.search.ripgrep import Runner
from file_search_mcp.tools import (
    SearchTools,
    ToolDispatchError,
    ToolRegistry,
    register_builtin_tools,
)
from file_search_mcp.tools.operations import CachedValue

logger = logging.getLogger(__name__)

METRICS_FILE_NAME = "metrics.jsonl"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def encode_response(response: dict[str, object]) -> str:
    """Encode one response exactly as it is written to the output stream."""
    return json.dumps(response, sort_keys=True)


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    method: str
    params: dict[str, object]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog="file-search-mcp")
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--max-chars", type=int, required=False, default=None)
    parser.add_argument("--cache-enabled", choices=("true", "false"), required=False, default=None)
    parser.add_argument("--cache-ttl-seconds", type=float, required=False, default=None)
    parser.add_argument("--cache-max-entries", type=int, required=False, default=None)
    parser.add_argument(
        "--metrics-enabled", choices=("true", "false"), required=False, default=None
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, required=False, default="WARNING")
    return parser


class StdioServer:
    """JSON-lines server routing requests to the registered search tools."""

    def __init__(self, config: ServerConfig, ripgrep_runner: Runner = subprocess.run) -> None:
        self._config = config
        self._cache: QueryCache[CachedValue] = QueryCache(
            ttl_seconds=config.cache.ttl_seconds,
            max_entries=config.cache.max_entries,
        )
        self._sweeper = CacheSweeper(
            self._cache, interval_seconds=config.cache.sweep_interval_seconds
        )
        self._metrics = JsonlMetricsRecorder(
            path=config.data_dir / METRICS_FILE_NAME,
            enabled=config.metrics.enabled,
        )
        self._tools = SearchTools(
            config=config,
            cache=self._cache,
            metrics=self._metrics,
            ripgrep_runner=ripgrep_runner,
        )
        self._registry = ToolRegistry()
        register_builtin_tools(self._registry, tools=self._tools, metrics=self._metrics)
        self._fallback_request_counter = 0

    @property
    def config(self) -> ServerConfig:
        """Return the effective configuration."""
        return self._config

    @property
    def cache(self) -> QueryCache[CachedValue]:
        """Return the shared result cache."""
        return self._cache

    @property
    def sweeper(self) -> CacheSweeper:
        """Return the background cache sweeper."""
        return self._sweeper

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests from in_stream and write JSON-line responses."""
        if self._config.cache.enabled:
            self._sweeper.start()
        try:
            for raw_line in in_stream:
                line = raw_line.strip()
                if not line:
                    continue
                response = self.handle_json_line(line)
                out_stream.write(f"{encode_response(response)}\n")
                out_stream.flush()
        finally:
            self.close()

    def close(self) -> None:
        """Stop background work. Safe to call more than once."""
        self._sweeper.stop()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        """Handle a single JSON-line request."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            logger.debug("rejected non-JSON request line of length %d", len(raw_line))
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_JSON",
                message="Request must be valid JSON.",
            )
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate and dispatch a parsed payload."""
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            return parsed

        request = parsed
        if request.method == "tools/list":
            return self.success_response(
                request_id=request.request_id,
                result={"tools": self._registry.describe()},
            )

        tool_name: str
        arguments: dict[str, object]
        if request.method == "tools/call":
            tool_name_value = request.params.get("name")
            arguments_value = request.params.get("arguments", {})
            if not isinstance(tool_name_value, str) or not tool_name_value:
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.name must be a non-empty string.",
                )
            if not isinstance(arguments_value, dict):
                return self.error_response(
                    request_id=request.request_id,
                    code="INVALID_PARAMS",
                    message="tools/call params.arguments must be an object.",
                )
            tool_name = tool_name_value
            arguments = arguments_value
        else:
            tool_name = request.method
            arguments = request.params

        try:
            result = self._registry.dispatch(name=tool_name, arguments=arguments)
        except ToolDispatchError as error:
            logger.debug("%s rejected: %s %s", tool_name, error.code, error.message)
            return self.error_response(
                request_id=request.request_id,
                code=error.code,
                message=error.message,
            )
        except Exception:
            logger.exception("unhandled error while executing %s", tool_name)
            return self.error_response(
                request_id=request.request_id,
                code="INTERNAL_ERROR",
                message="Unhandled server error while executing tool.",
            )
        response = self.success_response(request_id=request.request_id, result=result)
        return self.fit_response(response)

    def fit_response(self, response: dict[str, object]) -> dict[str, object]:
        """Shorten the result text until the encoded response fits max_chars."""
        limit = self._config.limits.max_chars
        size = len(encode_response(response))
        result = response.get("result")
        if size <= limit or not isinstance(result, dict):
            return response
        text = result.get("text")
        if not isinstance(text, str):
            return response
        if "was_truncated" in result:
            result["was_truncated"] = True
            size = len(encode_response(response))
        while size > limit and text:
            text = truncate_text(text, max(0, len(text) - (size - limit) - 1))
            result["text"] = text
            size = len(encode_response(response))
        if size > limit:
            logger.warning("response of %d chars exceeds max_chars=%d without text", size, limit)
        return response

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate request payload and return normalized Request."""
        if not isinstance(payload, dict):
            return self.error_response(
                request_id=self.next_request_id(),
                code="INVALID_REQUEST",
                message="Request must be an object.",
            )

        request_id = self.extract_request_id(payload.get("id"))
        method = payload.get("method")
        params = payload.get("params", {})

        if not isinstance(method, str) or not method:
            return self.error_response(
                request_id=request_id,
                code="INVALID_REQUEST",
                message="Request method must be a non-empty string.",
            )
        if not isinstance(params, dict):
            return self.error_response(
                request_id=request_id,
                code="INVALID_PARAMS",
                message="Request params must be an object.",
            )

        return Request(request_id=request_id, method=method, params=params)

    def extract_request_id(self, request_id: object) -> str:
        """Extract request ID from payload or synthesize deterministic fallback."""
        if isinstance(request_id, str) and request_id:
            return request_id
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            return str(request_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        """Generate deterministic fallback request IDs for invalid/missing IDs."""
        self._fallback_request_counter += 1
        return f"req-{self._fallback_request_counter:06d}"

    @staticmethod
    def success_response(
        request_id: str,
        result: dict[str, object],
        warnings: list[str] | None = None,
    ) -> dict[str, object]:
        """Build success envelope."""
        return {
            "request_id": request_id,
            "ok": True,
            "result": result,
            "warnings": warnings or [],
        }

    @staticmethod
    def error_response(request_id: str, code: str, message: str) -> dict[str, object]:
        """Build explicit error envelope."""
        return {
            "request_id": request_id,
            "ok": False,
            "result": {},
            "warnings": [],
            "error": {"code": code, "message": message},
        }


def create_server(
    root: str,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
    ripgrep_runner: Runner = subprocess.run,
) -> StdioServer:
    """Create a configured STDIO server instance."""
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = CliOverrides(
            data_dir=Path(data_dir).resolve(),
            max_chars=overrides.max_chars,
            cache_enabled=overrides.cache_enabled,
            cache_ttl_seconds=overrides.cache_ttl_seconds,
            cache_max_entries=overrides.cache_max_entries,
            metrics_enabled=overrides.metrics_enabled,
        )
    config = load_effective_config(root=Path(root), overrides=overrides)
    return StdioServer(config=config, ripgrep_runner=ripgrep_runner)


def _flag(value: str | None) -> bool | None:
    if value is None:
        return None
    return value == "true"


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the file search server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        max_chars=args.max_chars,
        cache_enabled=_flag(args.cache_enabled),
        cache_ttl_seconds=args.cache_ttl_seconds,
        cache_max_entries=args.cache_max_entries,
        metrics_enabled=_flag(args.metrics_enabled),
    )
    try:
        server = create_server(root=args.root, cli_overrides=overrides)
    except ValueError as error:
        parser.error(str(error))
    logger.info("serving %s", server.config.root)
    logger.debug(
        "effective config: %s", json.dumps(server.config.to_public_dict(), sort_keys=True)
    )
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
