# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Entry point for ``python -m labelocr``."""
from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    main()
