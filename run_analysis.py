import sys

from src.config import Config
from src.errors import AnalysisError
from src.utils.db import DatabaseManager


def banner(title, purpose=None):
    print("\n" + "=" * 80)
    print(title)
    if purpose:
        print(f"Purpose: {purpose}")
    print("=" * 80)


def run(data_path=None):
    from src.ingest.loader import load_stations, CANDIDATE_PREDICTORS
    from src.features.build_features import FeatureBuilder
    from src.models.feature_reduction import reduce_features, rank_correlation, reduced_set_vif
    from src.models.ridership_models import RidershipModeler, compare_predictor_sets, model_summary
    from src.exploration.ridership_report import RidershipReporter

    Config.initialize_folders()
    reporter = RidershipReporter()

    # --- LAYER 1: LOAD & TRANSFORM ---
    banner("LAYER 1: LOAD & TRANSFORM", "Read station attributes and derive log10 ridership")

    print("\n→ Loading station table...")
    with DatabaseManager() as conn:
        stations = load_stations(data_path or Config.DATA_PATH, con=conn)

    print("→ Deriving log_ridership = log10(trip_count)...")
    stations = FeatureBuilder().add_log_ridership(stations)

    reporter.plot_ridership_histograms(stations)
    reporter.plot_predictor_scatter(stations, CANDIDATE_PREDICTORS)

    # --- LAYER 2: FEATURE REDUCTION ---
    banner("LAYER 2: FEATURE REDUCTION", "Lasso shrinkage + collinearity cross-checks")

    print(f"\n→ Step 2.1: {Config.LASSO_CV_FOLDS}-fold LassoCV ({Config.LASSO_RULE} rule, seed {Config.RANDOM_SEED})")
    reduction = reduce_features(stations, CANDIDATE_PREDICTORS)
    reporter.lasso_table(reduction)
    reporter.plot_lasso_cv_curve(reduction)
    print(f"   Dropped by lasso: {list(reduction.dropped)}")

    print("\n→ Step 2.2: Spearman correlation and VIF of the reduced set")
    corr = rank_correlation(stations, CANDIDATE_PREDICTORS)
    reporter.plot_correlation_heatmap(corr)
    reporter.vif_table(reduced_set_vif(stations, reduction), title="VIF (lasso-retained set)",
                       threshold=Config.VIF_THRESHOLD)

    # --- LAYER 3: MODEL FITTING ---
    banner("LAYER 3: MODEL FITTING", "Three OLS variants of log ridership")
    modeler = RidershipModeler()

    print("\n→ Step 3.1: Lasso-informed OLS with VIF trim")
    fit_a, vif_dropped = modeler.fit_lasso_informed(stations, reduction)
    print(f"   Removed by VIF trim (threshold {modeler.vif_threshold}): {vif_dropped or 'none'}")

    print("\n→ Step 3.2: Bidirectional stepwise AIC")
    fit_b = modeler.fit_stepwise(stations)

    print(f"\n→ Step 3.3: Stepwise AIC without the top {Config.TOP_RIDERSHIP_EXCLUDED} stations")
    fit_c = modeler.fit_stepwise_without_top(stations)

    # --- LAYER 4: REPORTING ---
    banner("LAYER 4: REPORTING", "Coefficient tables and residual diagnostics")
    reporter.stepwise_table(fit_b)
    reporter.stepwise_table(fit_c)

    models = [fit_a, fit_b.model, fit_c.model]
    for model in models:
        reporter.coefficient_table(model)
        reporter.vif_table(model.vif, title=f"VIF: {model.name}")
        reporter.influential_stations(model)
        reporter.plot_model_diagnostics(model)

    reporter.summary_table(model_summary(models))

    comparison = compare_predictor_sets(fit_b.model, fit_c.model)
    print("\nStepwise agreement with/without top stations:")
    print(f"  • Shared: {comparison['shared']}")
    print(f"  • Only with all stations: {comparison['only_in_first']}")
    print(f"  • Only without top stations: {comparison['only_in_second']}")
    print(f"  • Identical selection: {comparison['agree']}")

    return {"reduction": reduction, "fit_a": fit_a, "vif_dropped": vif_dropped,
            "fit_b": fit_b, "fit_c": fit_c, "comparison": comparison}


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    data_path = argv[0] if argv else None

    print("=" * 80)
    print("  STATION RIDERSHIP REGRESSION ANALYSIS")
    print("=" * 80)

    try:
        run(data_path)
    except AnalysisError as e:
        print(f"\n[{e.stage.upper()} FAILED] {type(e).__name__}: {e}")
        raise SystemExit(1)

    print("\n" + "=" * 80)
    print("  ANALYSIS COMPLETE")
    print(f"  All plots saved to: {Config.OUTPUT_DIR}")
    print("=" * 80)


if __name__ == "__main__":
    main()
