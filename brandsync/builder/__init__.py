# brandsync/builder/__init__.py
"""
Builder module initialization.

The draft models, the curated templates and the controller that owns an
operator's working copy between edits and publish.
"""

from .models import (
    BuilderStatus,
    BuilderStep,
    Draft,
    DraftContent,
    GradientBackground,
    ImageBackground,
    PatternBackground,
    SolidBackground,
)
from .templates import BUILDER_TEMPLATES, BuilderTemplate, get_template
from .controller import BuilderDraftController

__all__ = [
    # Draft models
    "BuilderStatus",
    "BuilderStep",
    "Draft",
    "DraftContent",
    "GradientBackground",
    "ImageBackground",
    "PatternBackground",
    "SolidBackground",
    # Templates
    "BUILDER_TEMPLATES",
    "BuilderTemplate",
    "get_template",
    # Controller
    "BuilderDraftController",
]
