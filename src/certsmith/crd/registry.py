"""Registry of the CRD models served by the operator."""

import importlib
import logging
import pkgutil
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MODEL_PACKAGES = ["certsmith.models"]


class CRDInfo(BaseModel):
    """Everything needed to render one CustomResourceDefinition."""

    spec_model: Type[BaseModel]
    status_model: Optional[Type[BaseModel]] = None
    group: str
    version: str
    kind: str
    plural: str
    scope: str = "Namespaced"
    printer_columns: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def key(self):
        return f"{self.group}/{self.version}/{self.kind}"

    @property
    def singular(self):
        return self.kind.lower()

    @property
    def crd_name(self):
        return f"{self.plural}.{self.group}"


class CRDRegistry:
    """Process-wide set of registered CRDs, filled by the ``register`` decorator."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._crds = {}
        return cls._instance

    @classmethod
    def register(
        cls,
        group,
        version,
        kind,
        plural=None,
        scope="Namespaced",
        status_model=None,
        printer_columns=None,
    ):
        """Class decorator registering a spec model as a CRD.

        Args:
            group: API group, e.g. 'certs.certsmith.io'
            version: API version, e.g. 'v1'
            kind: Resource kind, e.g. 'Certificate'
            plural: Plural resource name, 'kind.lower() + s' when omitted
            scope: 'Namespaced' or 'Cluster'
            status_model: Pydantic model rendered as the ``.status`` schema
            printer_columns: additionalPrinterColumns for kubectl output
        """

        def decorator(spec_model):
            info = CRDInfo(
                spec_model=spec_model,
                status_model=status_model,
                group=group,
                version=version,
                kind=kind,
                plural=plural or f"{kind.lower()}s",
                scope=scope,
                printer_columns=list(printer_columns or []),
            )
            cls()._crds[info.key] = info
            logger.debug(f"Registered CRD {info.key}")
            return spec_model

        return decorator

    def discover_models(self, package_paths=None):
        """Import every module of the model packages so their CRDs register."""
        for package_path in package_paths or MODEL_PACKAGES:
            try:
                package = importlib.import_module(package_path)
            except ImportError:
                logger.warning(f"Model package {package_path} not found")
                continue

            for module in pkgutil.iter_modules(getattr(package, "__path__", [])):
                module_path = f"{package_path}.{module.name}"
                try:
                    importlib.import_module(module_path)
                except ImportError as e:
                    logger.warning(f"Could not import {module_path}: {e}")

    def all(self):
        return list(self._crds.values())

    def get(self, group, version, kind):
        return self._crds.get(f"{group}/{version}/{kind}")

    def keys(self):
        return sorted(self._crds)
