import sys
import textwrap
import uuid
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import pytest

import beanwire
from beanwire.container import ApplicationContext
from beanwire.decorators import component_scan, imports
from beanwire.properties import PropertyResolver
from beanwire.resource_resolver import ResourceResolver
from beanwire.scanner import ComponentScanner


@dataclass
class TmpPackage:
    name: str
    root: Path


def _package_files(files: Dict[str, str]) -> Dict[str, str]:
    out = {rel: textwrap.dedent(src).lstrip() for rel, src in files.items()}
    for rel in list(out):
        parts = rel.split("/")[:-1]
        for i in range(len(parts)):
            init = "/".join(parts[: i + 1] + ["__init__.py"])
            out.setdefault(init, "")
    out.setdefault("__init__.py", "")
    return out


@pytest.fixture
def package_factory(tmp_path, monkeypatch):
    """Write a throwaway package to disk (or into a zip) and put its root on ``sys.path``.

    ``files`` maps paths relative to the package directory to source text;
    missing ``__init__.py`` files are added.
    """
    names = []

    def make(files: Dict[str, str], *, archive: bool = False) -> TmpPackage:
        name = f"bw_app_{uuid.uuid4().hex[:10]}"
        names.append(name)
        contents = _package_files(files)
        if archive:
            root = tmp_path / f"{name}.zip"
            with zipfile.ZipFile(root, "w") as zf:
                for rel, src in sorted(contents.items()):
                    zf.writestr(f"{name}/{rel}", src)
        else:
            root = tmp_path / f"root_{name}"
            for rel, src in contents.items():
                path = root / name / rel
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(src, encoding="utf-8")
        monkeypatch.syspath_prepend(str(root))
        return TmpPackage(name, root)

    yield make

    for mod in list(sys.modules):
        if any(mod == n or mod.startswith(n + ".") for n in names):
            del sys.modules[mod]


@pytest.fixture
def wire():
    """Build a context whose candidates are exactly the given classes."""
    contexts = []

    def build(*classes, properties=None) -> ApplicationContext:
        root = imports(*classes)(component_scan("beanwire_unscanned")(type("Root", (), {})))
        ctx = ApplicationContext(
            root,
            PropertyResolver(properties or {}),
            scanner=ComponentScanner(ResourceResolver(())),
        )
        contexts.append(ctx)
        return ctx

    yield build

    for ctx in contexts:
        ctx.close()


@pytest.fixture(autouse=True)
def reset_process_context():
    yield
    beanwire.reset()
