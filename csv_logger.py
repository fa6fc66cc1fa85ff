# csv_logger.py
# ------------------------------------------------------------
# CSV logging for the collective classification experiments.

import csv

CSV_FILE_PATH = "collective_results.csv"   # default output file

CSV_HEADERS = [
    "Dataset", "Model", "Lab_Frac", "K", "Rounds", "Acc", "AUC",
]
COLUMN_WIDTHS = [14, 16, 10, 6, 8, 10, 10]


def format_for_csv_row(data_list, widths):
    return [str(item).ljust(widths[i]) for i, item in enumerate(data_list)]


def initialize_csv(path=CSV_FILE_PATH):
    with open(path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(format_for_csv_row(CSV_HEADERS, COLUMN_WIDTHS))


def append_to_csv(data_row, path=CSV_FILE_PATH):
    if len(data_row) != len(CSV_HEADERS):
        raise ValueError(f"Expected {len(CSV_HEADERS)} columns, got {len(data_row)}")
    with open(path, 'a', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(format_for_csv_row(data_row, COLUMN_WIDTHS))
