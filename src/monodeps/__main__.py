# SPDX-License-Identifier: MIT
"""Allow ``python -m monodeps``."""

from monodeps.cli import main

if __name__ == "__main__":
    main()
