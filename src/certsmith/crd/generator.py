"""Render registered CRD models as CustomResourceDefinitions."""

import hashlib
import json
import logging
from pathlib import Path

import yaml
from kubernetes import client

from .registry import CRDRegistry

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("crds/generated")
HASH_FILE = ".models_hash"
KUSTOMIZATION_FILE = "kustomization.yaml"

# JSON schema keys that carry over unchanged to a structural OpenAPI schema.
_SCALAR_KEYS = ("type", "format", "description", "default", "enum", "minLength", "minimum")


def schema_to_openapi(schema):
    """Turn a pydantic model JSON schema into a structural OpenAPI v3 object schema."""
    defs = schema.get("$defs", {})
    result = {
        "type": "object",
        "properties": {
            name: _convert(node, defs) for name, node in schema.get("properties", {}).items()
        },
    }
    if schema.get("required"):
        result["required"] = list(schema["required"])
    return result


def _resolve(node, defs):
    """Follow ``$ref`` and single-element ``allOf`` wrappers to the referenced schema."""
    description = node.get("description")
    while True:
        if "$ref" in node:
            target = defs.get(node["$ref"].rsplit("/", 1)[-1])
            if target is None:
                break
            node = target
        elif len(node.get("allOf", [])) == 1:
            node = node["allOf"][0]
        else:
            break
    if description is not None:
        node = {**node, "description": description}
    return node


def _convert(node, defs):
    node = _resolve(node, defs)

    # Optional[X] arrives as anyOf [X, null]
    variants = [v for v in node.get("anyOf", []) if v.get("type") != "null"]
    if len(variants) == 1:
        inner = {**_resolve(variants[0], defs)}
        for key in ("description", "default"):
            if node.get(key) is not None:
                inner[key] = node[key]
        converted = _convert(inner, defs)
        converted["nullable"] = True
        return converted

    kind = node.get("type")
    if kind == "array":
        converted = {"type": "array"}
        if "items" in node:
            converted["items"] = _convert(node["items"], defs)
    elif kind == "object":
        converted = {"type": "object"}
        if "properties" in node:
            converted["properties"] = {
                name: _convert(child, defs) for name, child in node["properties"].items()
            }
        if node.get("required"):
            converted["required"] = list(node["required"])
        if node.get("additionalProperties") is not False:
            converted["x-kubernetes-preserve-unknown-fields"] = True
    elif kind is None:
        return {"type": "object", "x-kubernetes-preserve-unknown-fields": True}
    else:
        return {key: node[key] for key in _SCALAR_KEYS if key in node}

    if "description" in node:
        converted["description"] = node["description"]
    return converted


class CRDManager:
    """Renders the registered CRDs and writes them to disk or to the cluster."""

    def __init__(self, output_dir=None, registry=None):
        self.output_dir = Path(output_dir) if output_dir else DEFAULT_OUTPUT_DIR
        self.registry = registry or CRDRegistry()

    def render(self, info):
        """Build the CustomResourceDefinition body for one registered CRD."""
        try:
            spec_schema = schema_to_openapi(info.spec_model.model_json_schema())
            if info.status_model is not None:
                status_schema = schema_to_openapi(info.status_model.model_json_schema())
            else:
                status_schema = {"type": "object"}
        except Exception as e:
            raise ValueError(f"Failed to build schema for {info.key}: {e}") from e
        status_schema["x-kubernetes-preserve-unknown-fields"] = True

        version = {
            "name": info.version,
            "served": True,
            "storage": True,
            "subresources": {"status": {}},
            "schema": {
                "openAPIV3Schema": {
                    "type": "object",
                    "required": ["spec"],
                    "properties": {"spec": spec_schema, "status": status_schema},
                }
            },
        }
        if info.printer_columns:
            version["additionalPrinterColumns"] = [dict(c) for c in info.printer_columns]

        return {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": info.crd_name},
            "spec": {
                "group": info.group,
                "scope": info.scope,
                "names": {
                    "kind": info.kind,
                    "plural": info.plural,
                    "singular": info.singular,
                    "shortNames": [info.singular[:4]],
                },
                "versions": [version],
            },
        }

    def render_all(self):
        """All registered CRDs keyed by CRD name."""
        self.registry.discover_models()
        return {info.crd_name: self.render(info) for info in self.registry.all()}

    def fingerprint(self):
        """Digest of the rendered CRDs, used to skip unchanged regeneration."""
        rendered = json.dumps(self.render_all(), sort_keys=True)
        return hashlib.sha256(rendered.encode()).hexdigest()

    def write_files(self, force=False):
        """Write one YAML file per CRD plus a kustomization.

        Returns:
            bool: False if nothing was written because the models are unchanged.
        """
        crds = self.render_all()
        if not crds:
            logger.warning("No CRD models registered")
            return False

        self.output_dir.mkdir(parents=True, exist_ok=True)
        hash_path = self.output_dir / HASH_FILE
        digest = self.fingerprint()
        if not force and hash_path.exists() and hash_path.read_text().strip() == digest:
            logger.info("CRD models unchanged, skipping generation")
            return False

        filenames = []
        for crd_name, body in sorted(crds.items()):
            filename = f"{crd_name}.yaml"
            (self.output_dir / filename).write_text(
                yaml.safe_dump(body, default_flow_style=False, sort_keys=False)
            )
            filenames.append(filename)
            logger.info(f"Wrote CRD {filename}")

        kustomization = {
            "apiVersion": "kustomize.config.k8s.io/v1beta1",
            "kind": "Kustomization",
            "resources": filenames,
        }
        (self.output_dir / KUSTOMIZATION_FILE).write_text(
            yaml.safe_dump(kustomization, default_flow_style=False)
        )
        hash_path.write_text(digest)

        logger.info(f"Wrote {len(filenames)} CRD files to {self.output_dir}")
        return True

    def apply(self, api_client=None):
        """Create missing CRDs in the cluster and replace existing ones.

        Returns:
            int: Number of CRDs applied
        """
        api_client = api_client or client.ApiextensionsV1Api()

        crds = self.render_all()
        for crd_name, body in crds.items():
            try:
                current = api_client.read_custom_resource_definition(crd_name)
            except client.exceptions.ApiException as e:
                if e.status != 404:
                    raise
                api_client.create_custom_resource_definition(body=body)
                logger.info(f"Created CRD {crd_name}")
                continue

            body["metadata"]["resourceVersion"] = current.metadata.resource_version
            api_client.replace_custom_resource_definition(name=crd_name, body=body)
            logger.info(f"Replaced CRD {crd_name}")

        return len(crds)

    def validate_files(self):
        """Check that every YAML file in the output directory is a CRD."""
        if not self.output_dir.is_dir():
            logger.error(f"CRD directory {self.output_dir} does not exist")
            return False

        paths = [p for p in sorted(self.output_dir.glob("*.yaml")) if p.name != KUSTOMIZATION_FILE]
        if not paths:
            logger.error(f"No CRD files in {self.output_dir}")
            return False

        invalid = []
        for path in paths:
            body = yaml.safe_load(path.read_text())
            if (
                not isinstance(body, dict)
                or body.get("kind") != "CustomResourceDefinition"
                or not all(k in body for k in ("apiVersion", "metadata", "spec"))
            ):
                logger.error(f"{path.name} is not a valid CustomResourceDefinition")
                invalid.append(path.name)

        logger.info(f"Validated {len(paths) - len(invalid)}/{len(paths)} CRD files")
        return not invalid
