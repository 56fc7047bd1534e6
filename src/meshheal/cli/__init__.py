# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""Command-line interface for meshheal."""

from .main import main

__all__ = ["main"]
