"""Command line entry for the gateway: an HTTP server and a worker."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import asdict
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote
from wsgiref.simple_server import make_server

import yaml

from injectsvc.gateway import GatewayUserController, HelloController
from injectsvc.injection import setup_default_injector, shutdown_default_injector
from injectsvc.user_controller import ControllerError

logger = logging.getLogger(__name__)

_CODE_OK = 0
_CODE_INTERNAL = 50
_CODE_VALIDATION = 51
_CODE_NOT_FOUND = 65

_DEFAULT_PORT = 8000
_CONFIG_CANDIDATES = ("config.yaml", "manifest/config/config.yaml")

Params = dict[str, list[Any]]
StartResponse = Callable[[str, list[tuple[str, str]]], Any]


class _ValidationError(Exception):
    pass


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a YAML configuration file; an empty file gives an empty mapping."""
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"configuration in {path} is not a mapping")
    return dict(data)


def _add(params: Params, key: str, value: Any) -> None:
    key = key.lower()
    if key.endswith("[]"):
        key = key[:-2]
    values = value if isinstance(value, list) else [value]
    params.setdefault(key, []).extend(values)


def _read_params(environ: Mapping[str, Any]) -> Params:
    params: Params = {}
    for key, values in parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True).items():
        _add(params, key, values)
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if length <= 0:
        return params
    raw = environ["wsgi.input"].read(length).decode("utf-8")
    if "json" in environ.get("CONTENT_TYPE", ""):
        try:
            body = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as exc:
            raise _ValidationError(f"invalid request body: {exc}") from exc
        if not isinstance(body, dict):
            raise _ValidationError("request body must be a JSON object")
        for key, value in body.items():
            _add(params, str(key), value)
    else:
        for key, values in parse_qs(raw, keep_blank_values=True).items():
            _add(params, key, values)
    return params


def _required(params: Params, name: str) -> str:
    values = params.get(name.lower(), [])
    value = str(values[0]) if values else ""
    if not value:
        raise _ValidationError(f"The {name} field is required")
    return value


def _required_list(params: Params, name: str) -> list[str]:
    values = [str(v) for v in params.get(name.lower(), []) if str(v)]
    if not values:
        raise _ValidationError(f"The {name} field is required")
    return values


def _respond(
    start_response: StartResponse, status: str, code: int, message: str, data: Any
) -> Iterable[bytes]:
    body = json.dumps({"code": code, "message": message, "data": data}).encode("utf-8")
    start_response(
        status,
        [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
    )
    return [body]


def make_wsgi_app(
    gateway: GatewayUserController, hello: HelloController
) -> Callable[[dict[str, Any], StartResponse], Iterable[bytes]]:
    """Build the WSGI application serving the hello and user endpoints."""

    def create(params: Params, _: list[str]) -> Any:
        return {"id": gateway.create(_required(params, "Name"))}

    def get_list(params: Params, _: list[str]) -> Any:
        items = gateway.get_list(_required_list(params, "Ids"))
        return {"list": [asdict(item) for item in items]}

    def delete(params: Params, _: list[str]) -> Any:
        gateway.delete(_required(params, "Id"))
        return {}

    def get_one(_: Params, segments: list[str]) -> Any:
        item = gateway.get_one(unquote(segments[1]))
        return {"data": asdict(item) if item is not None else None}

    collection_routes = {"POST": create, "GET": get_list, "DELETE": delete}

    def route(method: str, segments: list[str]):
        if segments == ["user"]:
            return collection_routes.get(method)
        if len(segments) == 2 and segments[0] == "user" and method == "GET":
            return get_one
        return None

    def app(environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        method = str(environ.get("REQUEST_METHOD", "GET")).upper()
        segments = [s for s in str(environ.get("PATH_INFO") or "/").split("/") if s]
        if segments == ["hello"] and method == "GET":
            body = hello.hello().encode("utf-8")
            start_response(
                "200 OK",
                [
                    ("Content-Type", "text/html; charset=utf-8"),
                    ("Content-Length", str(len(body))),
                ],
            )
            return [body]
        handler = route(method, segments)
        if handler is None:
            return _respond(start_response, "404 Not Found", _CODE_NOT_FOUND, "Not Found", None)
        try:
            data = handler(_read_params(environ), segments)
        except _ValidationError as exc:
            return _respond(start_response, "200 OK", _CODE_VALIDATION, str(exc), None)
        except ControllerError as exc:
            return _respond(start_response, "200 OK", _CODE_INTERNAL, str(exc), None)
        except Exception as exc:
            logger.exception("request failed")
            return _respond(
                start_response, "500 Internal Server Error", _CODE_INTERNAL, str(exc), None
            )
        return _respond(start_response, "200 OK", _CODE_OK, "", data)

    return app


def run_worker(config: Mapping[str, Any]) -> None:
    """Run the background worker with the default injector set up."""
    setup_default_injector(config)
    try:
        logger.info("service worker running")
    finally:
        shutdown_default_injector()


def run_server(config: Mapping[str, Any], host: str = "", port: int = _DEFAULT_PORT) -> None:
    """Serve the gateway over HTTP until interrupted."""
    injector = setup_default_injector(config)
    try:
        app = make_wsgi_app(GatewayUserController.from_injector(injector), HelloController())
        with make_server(host, port, app) as server:
            logger.info("http server started listening on [%s:%d]", host or "0.0.0.0", port)
            server.serve_forever()
    finally:
        shutdown_default_injector()


def _config_from(path: str | None, parser: argparse.ArgumentParser) -> dict[str, Any]:
    if path is not None:
        if not Path(path).is_file():
            parser.error(f"configuration file not found: {path}")
        return load_config(path)
    for candidate in _CONFIG_CANDIDATES:
        if Path(candidate).is_file():
            return load_config(candidate)
    return {}


def main(argv: list[str] | None = None) -> int:
    """Parse the command line and run the chosen command."""
    logging.basicConfig(level=logging.INFO)
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="path of the YAML configuration file")
    parser = argparse.ArgumentParser(prog="main")
    commands = parser.add_subparsers(dest="command")
    server = commands.add_parser("server", parents=[common], help="start service server")
    server.add_argument("--host", default="")
    server.add_argument("--port", type=int, default=_DEFAULT_PORT)
    commands.add_parser("worker", parents=[common], help="start service worker")
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0
    config = _config_from(args.config, parser)
    if args.command == "worker":
        run_worker(config)
        return 0
    try:
        run_server(config, args.host, args.port)
    except KeyboardInterrupt:
        pass
    return 0