"""Generate the application code of an API design.

Walks the design graph and writes, under config.app_output_dir:

  <version>/contexts.py     action contexts (the root itself when unversioned)
  <version>/controllers.py  controller interfaces and route mounting
  <version>/hrefs.py        canonical href builders
  media_types.py            media type representations
  user_types.py             user type representations

The output directory is recreated on every run and removed again if the
run fails, so it only ever holds the output of a complete run.
"""

from __future__ import annotations

import atexit
import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .config import GeneratorConfig
from .context_builder import (
    build_context_data,
    build_controllers_data,
    build_media_type_data,
    build_resource_data,
    build_user_type_data,
)
from .design import API, Action, MediaType, Resource, UserType, Version
from .errors import InvalidDesignError
from .naming import ResourceNames, build_context_names, build_resource_names
from .writers import (
    ContextsWriter,
    ControllersWriter,
    ImportSpec,
    MediaTypesWriter,
    ResourcesWriter,
    UserTypesWriter,
    simple_import,
)

logger = logging.getLogger(__name__)


def _check_design(api: Optional[API]) -> None:
    """Reject designs the generator cannot walk, before touching the filesystem."""
    if not isinstance(api, API):
        raise InvalidDesignError("missing API definition, make sure the design is properly loaded")
    if not api.name:
        raise InvalidDesignError("API definition has no name")
    seen: set[str] = set()
    for version in api.versions:
        v = version.version
        if v in seen:
            raise InvalidDesignError(f'version "{v}" is defined more than once')
        seen.add(v)
        if v in (".", "..") or "/" in v or "\\" in v:
            raise InvalidDesignError(f'version "{v}" cannot be used as a directory name')


def _remove_tree(path: Path) -> None:
    """Remove a directory tree, doing nothing if it does not exist."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass


class Generator:
    """The application code generator."""

    def __init__(self, config: Optional[GeneratorConfig] = None) -> None:
        self.config = config or GeneratorConfig()
        self.genfiles: list[str] = []

    @property
    def outdir(self) -> Path:
        return self.config.app_output_dir

    def generate(self, api: API) -> list[str]:
        """Generate the application code and return the generated file paths.

        Any error removes the output directory and is re-raised unchanged.
        """
        _check_design(api)
        with self._crash_guard():
            try:
                _remove_tree(self.outdir)
                self.outdir.mkdir(parents=True)
                api.iterate_versions(lambda v: self._generate_version(api, v))
                self._generate_media_types(api)
                self._generate_user_types(api)
            except Exception:
                self.cleanup()
                raise
        logger.info("generated %d files in %s", len(self.genfiles), self.outdir)
        return list(self.genfiles)

    def cleanup(self) -> None:
        """Remove the output directory, safe to call any number of times."""
        self.genfiles = []
        if self.outdir.exists():
            logger.warning("removing %s", self.outdir)
        _remove_tree(self.outdir)

    @contextmanager
    def _crash_guard(self) -> Iterator[None]:
        """Clean up if the run ends abnormally.

        Covers BaseExceptions the run does not handle (KeyboardInterrupt,
        SystemExit) and interpreter shutdown while the run is in flight.
        """
        atexit.register(self.cleanup)
        try:
            yield
        except BaseException:
            self.cleanup()
            raise
        finally:
            atexit.unregister(self.cleanup)

    def _record(self, path: Path) -> None:
        self.genfiles.append(str(path))

    def _generate_version(self, api: API, version: Version) -> None:
        verdir = self.outdir / version.version if version.version else self.outdir
        verdir.mkdir(parents=True, exist_ok=True)
        names = build_context_names(version)
        rnames = build_resource_names(version)
        self._generate_contexts(verdir, api, version, names)
        self._generate_controllers(verdir, version, names, rnames)
        self._generate_hrefs(verdir, api, version, rnames)

    def _generate_contexts(
        self,
        verdir: Path,
        api: API,
        version: Version,
        names: dict[tuple[str, str], str],
    ) -> None:
        """Generate the action contexts of every resource of the version."""
        ctx_file = verdir / "contexts.py"
        with ContextsWriter(ctx_file) as wr:
            self._record(ctx_file)
            title = f"{version.context()}: Application Contexts"
            imports = [
                ImportSpec("typing", ("Any",)),
                ImportSpec(self.config.runtime_module, ("RequestContext", "parse_param", "require_header")),
            ]
            wr.write_header(title, self.config.target_package, imports)

            def add_resource(r: Resource) -> None:
                def add_action(a: Action) -> None:
                    wr.execute(build_context_data(api, version, r, a, names))

                r.iterate_actions(add_action)

            version.iterate_resources(add_resource)
            wr.format_code()
        logger.debug("generated %s", ctx_file)

    def _generate_controllers(
        self,
        verdir: Path,
        version: Version,
        names: dict[tuple[str, str], str],
        rnames: dict[str, ResourceNames],
    ) -> None:
        """Generate the controller interfaces and mount functions of the version."""
        ctl_file = verdir / "controllers.py"
        with ControllersWriter(ctl_file) as wr:
            self._record(ctl_file)
            data = build_controllers_data(version, names, rnames)
            title = f"{version.context()}: Application Controllers"
            imports = [
                simple_import("logging"),
                ImportSpec("typing", ("Protocol",)),
                ImportSpec(self.config.runtime_module, ("VersionMux", "handler")),
            ]
            contexts = tuple(a.context for c in data for a in c.actions)
            if contexts:
                imports.append(ImportSpec(".contexts", contexts))
            wr.write_header(title, self.config.target_package, imports)
            wr.execute(data)
            wr.format_code()
        logger.debug("generated %s", ctl_file)

    def _generate_hrefs(
        self,
        verdir: Path,
        api: API,
        version: Version,
        rnames: dict[str, ResourceNames],
    ) -> None:
        """Generate the href factory functions of the version resources."""
        href_file = verdir / "hrefs.py"
        with ResourcesWriter(href_file) as wr:
            self._record(href_file)
            title = f"{version.context()}: Application Resource Href Factories"
            imports = [ImportSpec(self.config.runtime_module, ("fill_template",))]
            wr.write_header(title, self.config.target_package, imports)
            version.iterate_resources(lambda r: wr.execute(build_resource_data(api, r, rnames)))
            wr.format_code()
        logger.debug("generated %s", href_file)

    def _generate_media_types(self, api: API) -> None:
        """Generate the object and array media types."""
        mt_file = self.outdir / "media_types.py"
        with MediaTypesWriter(mt_file) as wr:
            self._record(mt_file)
            title = f"{api.context()}: Application Media Types"
            imports = [
                ImportSpec("dataclasses", ("dataclass",)),
                ImportSpec("typing", ("Any", "ClassVar", "Optional")),
            ]
            wr.write_header(title, self.config.target_package, imports)

            def add(mt: MediaType) -> None:
                data = build_media_type_data(api, mt)
                if data is not None:
                    wr.execute(data)

            api.iterate_media_types(add)
            wr.format_code()
        logger.debug("generated %s", mt_file)

    def _generate_user_types(self, api: API) -> None:
        """Generate every user type."""
        ut_file = self.outdir / "user_types.py"
        with UserTypesWriter(ut_file) as wr:
            self._record(ut_file)
            title = f"{api.context()}: Application User Types"
            imports = [
                ImportSpec("dataclasses", ("dataclass",)),
                ImportSpec("typing", ("Any", "Optional")),
            ]
            wr.write_header(title, self.config.target_package, imports)

            def add(ut: UserType) -> None:
                wr.execute(build_user_type_data(api, ut))

            api.iterate_user_types(add)
            wr.format_code()
        logger.debug("generated %s", ut_file)


def generate(api: API, config: Optional[GeneratorConfig] = None) -> list[str]:
    """Generate the application code of api, see Generator.generate."""
    return Generator(config).generate(api)
