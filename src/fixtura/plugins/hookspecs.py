"""pluggy hook specifications for fixture plugins.

Usage (implementing a plugin):
    from fixtura.plugins import hookimpl

    @hookimpl  # NOT @hookspec - that's for defining specs
    def fixtura_register_fixtures(session):
        session.register_worker_fixture("browser", launch_browser)
        session.register_fixture("page", new_page, deps=["browser"])
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from fixtura.engine.session import FixtureSession

PROJECT_NAME = "fixtura"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class FixturaFixtureSpec:
    """Hook specifications for fixture libraries."""

    @hookspec
    def fixtura_register_fixtures(self, session: "FixtureSession") -> None:
        """Register fixtures on ``session``.

        Called once per session. pluggy calls the most recently registered
        plugin first, so on a name clash the earliest registered plugin is
        the one that registers last and wins. Mark an overriding hookimpl
        with ``trylast=True`` to make it run after the others.
        """
