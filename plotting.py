# plotting.py

import logging
import os
import traceback

# Headless plotting backend
os.environ.setdefault("MPLBACKEND", "Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from evaluation import Space, regression_metrics
from utils import save_plot


def plot_convergence(curve, plot_dir, filename='convergence_plot.png'):
    """
    RMSE per iteration of the tree-count sweep (iteration index on x).
    """
    try:
        iterations, rmse_values = curve.points()
        space = Space(getattr(curve, 'space', Space.LABEL))

        fig, ax = plt.subplots(figsize=(8, 5))
        ax.plot(iterations, rmse_values, marker='o', label='RMSE per Iteration')
        ax.set_title('Model Convergence', fontsize=14)
        ax.set_xlabel('Iteration', fontsize=12)
        ax.set_ylabel(f'RMSE ({space.value} space)', fontsize=12)
        ax.grid(True)
        ax.legend()
        plt.tight_layout()

        fpath = save_plot(fig, filename, plot_dir)
        plt.close(fig)
        return fpath
    except Exception as e:
        logging.error(f"Error in plot_convergence: {str(e)}")
        logging.error(traceback.format_exc())
        return None


def plot_actual_vs_predicted(y_true, y_pred, plot_dir, filename='actual_vs_predicted.png'):
    """
    Scatter of actual vs predicted prices with a y = x reference line + metrics.
    """
    try:
        y_true = np.asarray(y_true, dtype=float).reshape(-1)
        y_pred = np.asarray(y_pred, dtype=float).reshape(-1)
        metrics = regression_metrics(y_true, y_pred, Space.PRICE)

        fig, ax = plt.subplots(figsize=(10, 6))
        sns.scatterplot(x=y_true, y=y_pred, alpha=0.5, ax=ax, label='Predicted vs. Actual')

        max_val = float(y_true.max())
        ax.plot([0, max_val], [0, max_val], 'r--', lw=2, label='Perfect Prediction (y = x)')

        ax.set_xlabel('Actual Price', fontsize=12)
        ax.set_ylabel('Predicted Price', fontsize=12)
        ax.set_title('Actual vs. Predicted Prices', fontsize=14)
        ax.grid(True)
        ax.legend(loc='lower right')

        textstr = f"MAE={metrics.mae:,.2f}\nRMSE={metrics.rmse:,.2f}\nR²={metrics.r2:.2f}"
        props = dict(boxstyle='round', facecolor='wheat', alpha=0.5)
        ax.text(
            0.05, 0.95, textstr,
            transform=ax.transAxes, fontsize=12,
            verticalalignment='top', bbox=props
        )

        plt.tight_layout()
        fpath = save_plot(fig, filename, plot_dir)
        plt.close(fig)
        return fpath
    except Exception as e:
        logging.error(f"Error in plot_actual_vs_predicted: {str(e)}")
        logging.error(traceback.format_exc())
        return None


def plot_permutation_importance(importances, plot_dir, filename='permutation_importance.png'):
    """
    Horizontal bar chart of permutation importance (mean degradation ± std).
    """
    try:
        df_imp = pd.DataFrame({
            'Feature': [item.feature for item in importances],
            'Importance': [item.mean for item in importances],
            'Std': [item.std for item in importances],
        })
        if df_imp.empty:
            logging.error("Permutation importance list is empty.")
            return None

        fig, ax = plt.subplots(figsize=(10, 6))
        sns.barplot(x='Importance', y='Feature', data=df_imp, color='steelblue', ax=ax)
        ax.errorbar(df_imp['Importance'], np.arange(len(df_imp)), xerr=df_imp['Std'], fmt='none', ecolor='black')
        ax.set_xlabel('Mean degradation (label space)', fontsize=12)
        ax.set_ylabel('Feature', fontsize=12)
        ax.set_title('Permutation Feature Importance', fontsize=14)
        plt.tight_layout()

        fpath = save_plot(fig, filename, plot_dir)
        plt.close(fig)
        return fpath
    except Exception as e:
        logging.error(f"Error in plot_permutation_importance: {str(e)}")
        logging.error(traceback.format_exc())
        return None
