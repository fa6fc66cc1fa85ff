# experiment_config.py
# ------------------------------------------------------------
# Datasets and model configurations for run_experiments.py.

from sklearn.ensemble import RandomForestClassifier

from collective import CollectiveKNN, FlipCollective
from data_utils import load_breast_cancer_data, load_mixed_data, load_moons_data

# --- General Settings ---
SEED = 42
CSV_FILE_PATH = "collective_results.csv"
LABEL_FRACTIONS = [0.1, 0.3]

# --- Dataset Configuration ---
DATASETS = {
    "Moons": load_moons_data,
    "BreastCancer": load_breast_cancer_data,
    "Mixed": load_mixed_data,
}

# --- Model Configuration ---
# 'model_name': shown in the CSV file
# 'factory'   : estimator class
# 'params'    : keyword arguments for the factory
MODELS = [
    {
        "model_name": "CollectiveKNN",
        "factory": CollectiveKNN,
        "params": {"max_k": 10, "cv_folds": 5},
    },
    {
        "model_name": "CollectiveKNN-ex",
        "factory": CollectiveKNN,
        "params": {"max_k": 10, "cv_folds": 5, "use_exhaustive_search": True},
    },
    {
        "model_name": "FlipCollective",
        "factory": FlipCollective,
        "params": {
            "estimator": RandomForestClassifier(n_estimators=50),
            "num_restarts": 3,
            "num_iterations": 5,
        },
    },
]
