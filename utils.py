# utils.py

import logging
import os

from config import EXTRA_DIRS


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
        force=True,
    )


def create_directories(directories=None):
    """Create necessary directories if they don't exist."""
    for directory in directories or EXTRA_DIRS:
        if not os.path.exists(directory):
            os.makedirs(directory)
            logging.info(f"Created directory: {directory}")


def save_plot(fig, filename, plot_dir):
    """Save a Matplotlib figure as PNG; returns the path or None on failure."""
    try:
        os.makedirs(plot_dir, exist_ok=True)
        file_path = os.path.join(plot_dir, filename if filename.endswith(".png") else f"{filename}.png")
        fig.savefig(file_path, bbox_inches='tight')
        logging.info(f"Plot saved: {file_path}")
        return file_path
    except Exception as e:
        logging.error(f"Error saving plot '{filename}': {e}")
        return None
