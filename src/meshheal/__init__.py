# Copyright 2025 Allard Peper (Dragon Ace / DragonAceNL)
# Licensed under the Apache License, Version 2.0 (see LICENSE).

"""meshheal - Repair triangle soups into consistently oriented solids."""

__version__ = "0.1.0"
