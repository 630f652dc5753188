"""Tests package - sets up import path for local modules.

This configures Python's import path so pytest can import awslabs.dynamodb_global_table
modules during development testing before the package is installed.
"""

import os
import sys


project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)
