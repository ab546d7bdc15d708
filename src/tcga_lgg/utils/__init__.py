"""
Utils package initialization
"""

from .shared_functions import (
    save_plot,
    save_results,
    setup_logging
)
