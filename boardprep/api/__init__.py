# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Action layer.

Actions are the public entry points. They take the signed-in user id and an
untrusted payload and always return an ActionResult.
"""

from boardprep.api.bookmarks import BookmarkActions
from boardprep.api.dependencies import (
    ActionDependencies,
    BaseActions,
    build_dependencies,
    require_entitled_user,
)
from boardprep.api.practice import PracticeActions
from boardprep.api.results import (
    ActionError,
    ActionResult,
    err,
    handle_error,
    ok,
)
from boardprep.api.stats import StatsActions
from boardprep.api.tags import TagActions

__all__ = [
    "ActionDependencies",
    "ActionError",
    "ActionResult",
    "BaseActions",
    "BookmarkActions",
    "PracticeActions",
    "StatsActions",
    "TagActions",
    "build_dependencies",
    "err",
    "handle_error",
    "ok",
    "require_entitled_user",
]
