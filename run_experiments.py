# run_experiments.py
# ------------------------------------------------------------
# Runs every configured model on every dataset and label fraction and
# writes one CSV row per run.

import logging

import numpy as np

import experiment_config as cfg
from collective import CollectiveError
from collective.evaluation import score, train
from collective.logging_setups import basic_logging_setup
from csv_logger import append_to_csv, initialize_csv
from data_utils import label_split


def run_experiments(datasets_config, models_config, label_fractions, seed=cfg.SEED, csv_path=cfg.CSV_FILE_PATH):
    initialize_csv(csv_path)
    results = []

    for dataset_name, loader in datasets_config.items():
        print(f"\n{'='*20} DATASET: {dataset_name.upper()} {'='*20}")
        dataset = loader()

        for model_cfg in models_config:
            model_name = model_cfg["model_name"]
            print(f"\n  --- Model: {model_name} ---")
            for frac in label_fractions:
                labeled, unlabeled = label_split(dataset, frac, seed=seed)
                model = model_cfg["factory"](seed=seed, **model_cfg["params"])
                try:
                    train(model, labeled, unlabeled)
                except CollectiveError as e:
                    print(f"    Label Fraction {frac*100:.0f}%: skipped ({e})")
                    continue
                metrics = score(model, unlabeled)

                k = model.measures_.get("measureDeterminedKNN", np.nan)
                rounds = model.measures_.get("measureNumRounds", np.nan)
                print(f"    Label Fraction {frac*100:.0f}%: Acc {metrics['accuracy']*100:5.2f}% | "
                      f"AUC {metrics['auc']:.3f} | K {k} | Rounds {rounds}")

                row = [dataset_name, model_name, frac, k, rounds,
                       f"{metrics['accuracy']:.4f}", f"{metrics['auc']:.4f}"]
                append_to_csv(row, csv_path)
                results.append(row)
    return results


if __name__ == "__main__":
    basic_logging_setup(level=logging.WARNING)
    run_experiments(cfg.DATASETS, cfg.MODELS, cfg.LABEL_FRACTIONS)
    print(f"\nResults written to {cfg.CSV_FILE_PATH}")
