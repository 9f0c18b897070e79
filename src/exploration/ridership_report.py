from src.config import Config
import seaborn as sns
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import os
import re
from scipy import stats
from statsmodels.nonparametric.smoothers_lowess import lowess

import matplotlib as mpl
# No scientific notation on axes
mpl.rcParams['axes.formatter.useoffset'] = False
mpl.rcParams['axes.formatter.limits'] = [-20, 20]


def _slug(name):
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


class RidershipReporter:
    """
    Renders coefficient tables and plots for the ridership models.
    Reads FittedModel / ReductionResult records only; never refits anything.
    """

    def __init__(self, output_dir=None, decimals=None, show_plots=None):
        self.output_dir = output_dir if output_dir is not None else Config.OUTPUT_DIR
        self.decimals = decimals if decimals is not None else Config.TABLE_DECIMALS
        self.show_plots = show_plots if show_plots is not None else Config.SHOW_PLOTS
        os.makedirs(self.output_dir, exist_ok=True)

    def _save_plot(self, filename: str, fig=None):
        """Internal helper to standardize how plots are saved."""
        fig = fig if fig is not None else plt.gcf()
        if not filename.endswith(('.png', '.jpg', '.pdf')):
            filename += '.png'

        save_path = os.path.join(self.output_dir, filename)
        fig.tight_layout()
        fig.savefig(save_path, dpi=300, bbox_inches='tight')
        print(f"Plot saved to {save_path}")

        if self.show_plots:
            plt.show()
        plt.close(fig)
        return save_path

    def _print_table(self, title, table):
        print(f"\n--- {title} ---")
        print(table.to_string())
        print("-" * (len(title) + 8))

    # ---------------- tables ----------------

    def coefficient_table(self, model):
        """Point estimate, standard error and p-value per term."""
        table = model.coefficients[["estimate", "std_error", "p_value"]].rename(columns={
            "estimate": "Estimate", "std_error": "Std. Error", "p_value": "p-value",
        }).round(self.decimals)

        self._print_table(f"{model.name} (n={model.nobs})", table)
        print(f"  R²: {model.r_squared:.{self.decimals}f} | "
              f"Adj. R²: {model.adj_r_squared:.{self.decimals}f} | AIC: {model.aic:.2f}")
        return table

    def vif_table(self, vif, title="Variance Inflation Factors", threshold=None):
        table = vif.sort_values(ascending=False).round(self.decimals).to_frame("VIF")
        if threshold is not None:
            table["above_threshold"] = table["VIF"] >= threshold
        self._print_table(title, table)
        return table

    def lasso_table(self, reduction):
        table = reduction.coefficients.round(self.decimals).to_frame("coefficient")
        table["kept"] = reduction.coefficients != 0
        self._print_table(f"Lasso coefficients ({reduction.rule} rule, alpha={reduction.alpha:.4g})", table)
        return table

    def stepwise_table(self, result):
        table = result.history.round({"aic": self.decimals}).set_index("step")
        self._print_table(f"Stepwise path: {result.model.name}", table)
        return table

    def summary_table(self, summary):
        table = summary.round(self.decimals)
        self._print_table("Model comparison", table)
        return table

    def influential_stations(self, model, top_n=5):
        """Stations ranked by Cook's distance, flagged against the 4/n rule of thumb."""
        threshold = 4 / model.nobs
        table = pd.DataFrame({
            "station_id": model.station_ids,
            "cooks_d": model.cooks_distance,
            "leverage": model.leverage,
            "std_residual": model.std_residuals,
        }).sort_values("cooks_d", ascending=False).head(top_n)
        table["above_4_over_n"] = table["cooks_d"] > threshold
        table = table.round(self.decimals).reset_index(drop=True)

        self._print_table(f"Influential stations: {model.name} (4/n = {threshold:.4f})", table)
        return table

    # ---------------- plots ----------------

    def plot_ridership_histograms(self, df, source="trip_count", target="log_ridership",
                                  filename="plot_ridership_histograms"):
        fig, axes = plt.subplots(1, 2, figsize=(12, 5))

        sns.histplot(df[source], bins=15, kde=True, color="steelblue", edgecolor="white", ax=axes[0])
        axes[0].set_title("Raw Ridership (Trips per Station)", fontsize=13, fontweight='bold')
        axes[0].set_xlabel("Trip count")

        sns.histplot(df[target], bins=15, kde=True, color="seagreen", edgecolor="white", ax=axes[1])
        axes[1].set_title("Log10 Ridership", fontsize=13, fontweight='bold')
        axes[1].set_xlabel("log10(trip count)")

        for ax in axes:
            ax.grid(axis='y', linestyle='--', alpha=0.3)
        sns.despine(fig=fig)
        return self._save_plot(filename, fig)

    def plot_predictor_scatter(self, df, predictors, target="log_ridership",
                               filename="plot_predictor_scatter", ncols=4):
        predictors = list(predictors)
        nrows = int(np.ceil(len(predictors) / ncols))
        fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3.5 * nrows), squeeze=False)

        for ax, col in zip(axes.flat, predictors):
            sns.regplot(data=df, x=col, y=target, ax=ax,
                        scatter_kws={"alpha": 0.6, "s": 25}, line_kws={"color": "darkred"})
            ax.set_title(col, fontsize=11, fontweight='bold')
            ax.set_ylabel("log10 ridership")

        for ax in axes.flat[len(predictors):]:
            ax.set_visible(False)

        fig.suptitle("Log Ridership vs Station Attributes", fontsize=15, fontweight='bold')
        sns.despine(fig=fig)
        return self._save_plot(filename, fig)

    def plot_correlation_heatmap(self, corr, filename="plot_correlation_heatmap"):
        size = max(8, 0.7 * len(corr))
        fig, ax = plt.subplots(figsize=(size, size * 0.85))
        cmap = sns.diverging_palette(240, 10, as_cmap=True)
        sns.heatmap(corr, annot=True, fmt=".2f", cmap=cmap, center=0, vmin=-1, vmax=1,
                    linewidths=0.3, cbar_kws={"shrink": 0.7, "label": "Spearman ρ"}, ax=ax)
        ax.set_title("Rank Correlation of Station Attributes", fontsize=15, fontweight='bold')
        return self._save_plot(filename, fig)

    def plot_lasso_cv_curve(self, reduction, filename="plot_lasso_cv_curve"):
        curve = reduction.cv_mse
        log_alpha = np.log10(curve["alpha"])

        fig, ax = plt.subplots(figsize=(10, 6))
        ax.errorbar(log_alpha, curve["mean_mse"], yerr=curve["se"], fmt='o', color="firebrick",
                    ecolor="lightgray", markersize=4, capsize=2)
        ax.axvline(np.log10(reduction.alpha_min), color="navy", linestyle='--',
                   label=f"min: {reduction.alpha_min:.4g}")
        ax.axvline(np.log10(reduction.alpha_1se), color="darkorange", linestyle=':',
                   label=f"1se: {reduction.alpha_1se:.4g}")

        ax.set_title("Lasso Cross-Validation Curve", fontsize=15, fontweight='bold')
        ax.set_xlabel("log10(alpha)")
        ax.set_ylabel("Mean CV MSE (± 1 SE)")
        ax.legend()
        sns.despine(fig=fig)
        return self._save_plot(filename, fig)

    def plot_model_diagnostics(self, model, filename=None, label_top=3):
        """
        Four-panel residual diagnostics: residuals vs fitted, normal Q-Q,
        scale-location and residuals vs leverage with Cook's distance contours.
        """
        filename = filename or f"plot_diagnostics_{_slug(model.name)}"
        fitted, resid = model.fitted, model.residuals
        std_resid, leverage = model.std_residuals, model.leverage
        ids = np.asarray(model.station_ids)
        top = np.argsort(model.cooks_distance)[::-1][:label_top]

        fig, axes = plt.subplots(2, 2, figsize=(12, 10))

        # 1. Residuals vs Fitted
        ax = axes[0, 0]
        ax.scatter(fitted, resid, alpha=0.7, edgecolor="white")
        smooth = lowess(resid, fitted, frac=2 / 3)
        ax.plot(smooth[:, 0], smooth[:, 1], color="red", linewidth=1.5)
        ax.axhline(0, color="gray", linestyle=':')
        ax.set_title("Residuals vs Fitted", fontweight='bold')
        ax.set_xlabel("Fitted values")
        ax.set_ylabel("Residuals")

        # 2. Normal Q-Q
        ax = axes[0, 1]
        stats.probplot(std_resid, dist="norm", plot=ax)
        if len(ax.get_lines()) > 1:
            ax.get_lines()[1].set_color("red")
        ax.set_title("Normal Q-Q", fontweight='bold')
        ax.set_xlabel("Theoretical quantiles")
        ax.set_ylabel("Standardized residuals")

        # 3. Scale-Location
        ax = axes[1, 0]
        root_abs = np.sqrt(np.abs(std_resid))
        ax.scatter(fitted, root_abs, alpha=0.7, edgecolor="white")
        smooth = lowess(root_abs, fitted, frac=2 / 3)
        ax.plot(smooth[:, 0], smooth[:, 1], color="red", linewidth=1.5)
        ax.set_title("Scale-Location", fontweight='bold')
        ax.set_xlabel("Fitted values")
        ax.set_ylabel("√|Standardized residuals|")

        # 4. Residuals vs Leverage
        ax = axes[1, 1]
        ax.scatter(leverage, std_resid, alpha=0.7, edgecolor="white")
        ax.axhline(0, color="gray", linestyle=':')
        h = np.linspace(max(leverage.min(), 1e-3), leverage.max() * 1.05, 100)
        for level, style in ((0.5, '--'), (1.0, ':')):
            bound = np.sqrt(level * model.n_params * (1 - h) / h)
            ax.plot(h, bound, color="red", linestyle=style, linewidth=1, label=f"Cook's D = {level}")
            ax.plot(h, -bound, color="red", linestyle=style, linewidth=1)
        pad = 0.5
        ax.set_ylim(std_resid.min() - pad, std_resid.max() + pad)
        ax.set_title("Residuals vs Leverage", fontweight='bold')
        ax.set_xlabel("Leverage")
        ax.set_ylabel("Standardized residuals")
        ax.legend(loc="lower left", fontsize=9)

        for i in top:
            axes[0, 0].annotate(ids[i], (fitted[i], resid[i]), fontsize=8)
            axes[1, 0].annotate(ids[i], (fitted[i], root_abs[i]), fontsize=8)
            axes[1, 1].annotate(ids[i], (leverage[i], std_resid[i]), fontsize=8)

        fig.suptitle(f"Residual Diagnostics: {model.name}", fontsize=15, fontweight='bold')
        return self._save_plot(filename, fig)
