"""Command line interface emitting NDJSON records for models and images."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, TextIO

from aiedge.clients.registry_client import ModelRegistryClient
from aiedge.errors import EdgeError, ValidationError
from aiedge.logging_config import configure_logging
from aiedge.models import ParamValue, PipelineRunSummary
from aiedge.services.edge_client import EdgeClient
from aiedge.utils.env import RuntimeSettings, load_settings
from aiedge.utils.params import read_params

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, Optional[float]], EdgeClient]


def _default_client_factory(
    registry_url: str,
    timeout: Optional[float],
) -> EdgeClient:
    return EdgeClient(ModelRegistryClient(registry_url, timeout=timeout))


def build_arg_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(
        prog="aiedge",
        description=(
            "AI Edge CLI: keep registered models in sync with their edge "
            "container images and trigger image builds."
        ),
    )
    argument_parser.add_argument(
        "-m",
        "--model-registry-url",
        help="Model registry base URL (default: $AIEDGE_MODEL_REGISTRY_URL).",
    )
    argument_parser.add_argument(
        "-k",
        "--kubeconfig",
        help="Path to the kubeconfig file (default: $KUBECONFIG).",
    )
    groups = argument_parser.add_subparsers(dest="group", required=True)

    models = groups.add_parser("models", help="Manage registered models.")
    model_commands = models.add_subparsers(dest="command", required=True)
    model_commands.add_parser("list", help="List registered models.")
    add = model_commands.add_parser(
        "add", help="Register a model with its first version."
    )
    add.add_argument("name")
    add.add_argument("description")
    add.add_argument("version")
    _add_params_option(add)

    images = groups.add_parser("images", help="Manage model images.")
    image_commands = images.add_subparsers(dest="command", required=True)
    list_images = image_commands.add_parser("list", help="List model images.")
    list_images.add_argument(
        "-w",
        "--with-pipeline-runs",
        action="store_true",
        help="Include the latest build pipeline run of each image.",
    )
    _add_namespace_option(list_images)

    describe = image_commands.add_parser(
        "describe", help="Describe one model image."
    )
    describe.add_argument("model_id")
    describe.add_argument("version")

    sync = image_commands.add_parser(
        "sync", help="Sync a model version and its image artifact."
    )
    sync.add_argument("model_id")
    sync.add_argument("version")
    _add_params_option(sync)

    build = image_commands.add_parser(
        "build", help="Trigger the build pipeline for an image."
    )
    build.add_argument("image_id")
    _add_namespace_option(build)
    _add_params_option(build)

    return argument_parser


def _add_params_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p",
        "--params",
        type=Path,
        help="YAML or JSON file with build parameters.",
    )


def _add_namespace_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-n",
        "--namespace",
        help="Kubernetes namespace (default: $AIEDGE_NAMESPACE).",
    )


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    client_factory: ClientFactory = _default_client_factory,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    configure_logging()
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    parsed_args = build_arg_parser().parse_args(argv)
    settings = load_settings()
    registry_url = parsed_args.model_registry_url or settings.model_registry_url
    client = client_factory(registry_url, settings.request_timeout)

    try:
        _dispatch(parsed_args, client, settings, out)
    except EdgeError as error:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {error}", file=err)
        return 1
    return 0


def _dispatch(
    args: argparse.Namespace,
    client: EdgeClient,
    settings: RuntimeSettings,
    out: TextIO,
) -> None:
    kubeconfig = args.kubeconfig or settings.kubeconfig
    namespace = getattr(args, "namespace", None) or settings.namespace

    if args.group == "models":
        if args.command == "list":
            for model in client.list_models():
                _emit(out, asdict(model))
        else:
            image = client.add_model(
                args.name,
                args.description,
                args.version,
                _load_params(args.params),
            )
            _emit(out, image.to_dict())
        return

    if args.command == "list":
        if args.with_pipeline_runs:
            if not namespace:
                raise ValidationError(
                    "namespace is required to list pipeline runs"
                )
            images = client.list_images_with_pipeline_runs(
                namespace, kubeconfig
            )
        else:
            images = client.list_images()
        for image in images:
            _emit(out, image.to_dict())
    elif args.command == "describe":
        _emit(out, client.describe_image(args.model_id, args.version).to_dict())
    elif args.command == "sync":
        resolved = client.sync_image(
            args.model_id, args.version, _load_params(args.params)
        )
        _emit(
            out,
            {
                "model_id": args.model_id,
                "version": args.version,
                "build_params": resolved,
            },
        )
    else:
        if not namespace:
            raise ValidationError("namespace is required")
        run = client.build_image(
            args.image_id, namespace, kubeconfig, _load_params(args.params)
        )
        _emit(out, _run_record(run))


def _load_params(path: Optional[Path]) -> Optional[Dict[str, ParamValue]]:
    if path is None:
        return None
    return read_params(path)


def _run_record(run: PipelineRunSummary) -> Dict[str, Any]:
    record = asdict(run)
    record["state"] = run.state.value
    return record


def _emit(out: TextIO, record: Mapping[str, Any]) -> None:
    print(to_ndjson_line(record), file=out)


def to_ndjson_line(record: Mapping[str, Any]) -> str:
    return json.dumps(record, separators=(",", ":"))


if __name__ == "__main__":
    sys.exit(main())
