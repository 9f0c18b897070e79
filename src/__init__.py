"""
Station Ridership Regression Analysis
-------------------------------------
This package explains bike-share station ridership from the socio-demographic
and built-environment attributes of each station's surroundings.

Module Hierarchy:
- `ingest`: Loads and validates the station attribute table.
- `features`: Derives log10 ridership and standardized predictors.
- `models`: Lasso feature reduction, OLS fits, VIF trimming and stepwise AIC.
- `exploration`: Coefficient tables, histograms, heatmaps and residual diagnostics.
- `utils`: Database connectivity.

Pipeline (4-Layer Framework):
1. Load & Transform Layer
2. Feature Reduction Layer (Lasso, rank correlation, VIF)
3. Model Layer (lasso-informed, stepwise, outlier-excluded stepwise)
4. Reporting Layer
"""
