#!/usr/bin/env python3
"""
PhishLens - Batch Analyzer
Runs the local detection engine over every file in a folder and writes a CSV summary
"""

import argparse
import csv
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor

from phishlens.core.phishing_detector import EmptyInputError, PhishingDetector
from phishlens.logging_config import configure_logging

logger = logging.getLogger("phishlens.batch")

CSV_FIELDS = ['file', 'risk_score', 'threat_level', 'matches', 'urls', 'status']


def analyze_file(detector: PhishingDetector, file_path: str) -> dict:
    """Analyze a single file and return its CSV row"""
    file_name = os.path.basename(file_path)

    try:
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            text = f.read()
    except OSError as e:
        print(f"❌ {file_name} | Failed: {e}")
        return {'file': file_name, 'status': 'READ_ERROR'}

    try:
        result = detector.analyze(text)
    except EmptyInputError:
        print(f"⚪ {file_name[:30]:<30} | empty")
        return {'file': file_name, 'status': 'EMPTY'}

    level = result.threat_level.value
    icon = '🔴' if result.risk_score >= 60 else '🟡' if result.risk_score >= 20 else '🟢'
    print(f"{icon} {file_name[:30]:<30} | {level:<10} ({result.risk_score})")

    return {
        'file': file_name,
        'risk_score': result.risk_score,
        'threat_level': level,
        'matches': len(result.suspicious_elements),
        'urls': len(result.url_analysis),
        'status': 'SUCCESS'
    }


def collect_files(folder_path: str) -> list:
    if not os.path.isdir(folder_path):
        return []
    return sorted(
        os.path.join(folder_path, f) for f in os.listdir(folder_path)
        if os.path.isfile(os.path.join(folder_path, f))
    )


def run_batch(folder_path: str, output_csv: str, workers: int = 4) -> list:
    files = collect_files(folder_path)
    if not files:
        print(f"❌ No files found in {folder_path}")
        return []

    print(f"📦 Found {len(files)} files.")
    detector = PhishingDetector()

    with ThreadPoolExecutor(max_workers=max(workers, 1)) as executor:
        results = list(executor.map(lambda path: analyze_file(detector, path), files))

    with open(output_csv, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in results:
            writer.writerow(row)

    analyzed = [r for r in results if r.get('status') == 'SUCCESS']
    flagged = sum(1 for r in analyzed if r['risk_score'] >= 40)

    print("\n" + "=" * 50)
    print("📊 BATCH REPORT")
    print("=" * 50)
    print(f"Analyzed: {len(analyzed)} | Flagged (>= MediumRisk): {flagged}")
    print(f"Results written to {output_csv}")
    print("=" * 50)
    return results


def main(argv=None):
    parser = argparse.ArgumentParser(description="Analyze a folder of messages with PhishLens")
    parser.add_argument("folder", help="folder containing text/email files")
    parser.add_argument("--output", default="phishlens_results.csv", help="CSV file to write")
    parser.add_argument("--workers", type=int, default=4, help="parallel workers")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    results = run_batch(args.folder, args.output, args.workers)
    return 0 if results else 1


if __name__ == "__main__":
    sys.exit(main())
