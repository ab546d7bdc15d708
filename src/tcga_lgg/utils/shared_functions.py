"""
Shared Functions Module
Common utility functions used across multiple modules
"""

import logging
import os

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level='INFO', log_file=None):
    """Configure root logging for command-line runs, optionally also to a file."""
    handlers = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO),
                        format=LOG_FORMAT, handlers=handlers, force=True)


def save_results(df, output_dir, filename, index=True):
    """Save results to CSV file and return its path"""
    try:
        os.makedirs(output_dir, exist_ok=True)
        output_file = os.path.join(output_dir, filename)
        df.to_csv(output_file, index=index)
        logger.info(f"Saved results to {output_file}")
        return output_file
    except Exception as e:
        logger.error(f"Error saving results {filename}: {e}")
        raise


def save_plot(fig, filename, output_dir):
    """
    Save a matplotlib figure to the specified output directory

    Parameters:
    -----------
    fig : matplotlib.figure.Figure
        Figure to save
    filename : str
        Name of the file (without extension)
    output_dir : str
        Directory to save the plot

    Returns:
    --------
    str
        Path of the saved PNG
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
        plot_path = os.path.join(output_dir, f"{filename}.png")
        fig.savefig(plot_path, dpi=300, bbox_inches='tight')
        logger.info(f"Saved plot: {plot_path}")
        return plot_path
    except Exception as e:
        logger.error(f"Error saving plot {filename}: {e}")
        raise
    finally:
        plt.close(fig)
