#!/usr/bin/env python
"""
Run LGG Analysis
This script runs the TCGA-LGG walkthrough pipeline
"""

import os
import sys

# Add the src directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), 'src')))

from tcga_lgg.lgg_main import main

if __name__ == "__main__":
    sys.exit(main())
