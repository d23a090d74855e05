import csv

import batch_analyze
from phishlens.core.phishing_detector import PhishingDetector


def write(folder, name, text):
    path = folder / name
    path.write_text(text, encoding="utf-8")
    return path


def test_analyze_file(tmp_path):
    path = write(tmp_path, "phish.eml", "URGENT: verify your account now, click here http://paypal-secure-login.tk")
    row = batch_analyze.analyze_file(PhishingDetector(), str(path))

    assert row["file"] == "phish.eml"
    assert row["status"] == "SUCCESS"
    assert row["risk_score"] == 100
    assert row["threat_level"] == "Critical"
    assert row["urls"] == 1


def test_empty_file(tmp_path):
    path = write(tmp_path, "blank.txt", "   \n")
    assert batch_analyze.analyze_file(PhishingDetector(), str(path)) == {"file": "blank.txt", "status": "EMPTY"}


def test_unreadable_file(tmp_path):
    row = batch_analyze.analyze_file(PhishingDetector(), str(tmp_path / "missing.txt"))
    assert row["status"] == "READ_ERROR"


def test_run_batch_writes_csv(tmp_path):
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    write(inbox, "a.txt", "Hi, let's meet for lunch tomorrow at noon.")
    write(inbox, "b.txt", "Your PayPal account has been suspended")
    write(inbox, "c.txt", "")
    output = tmp_path / "out.csv"

    results = batch_analyze.run_batch(str(inbox), str(output), workers=2)
    assert [r["file"] for r in results] == ["a.txt", "b.txt", "c.txt"]

    with open(output, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert list(rows[0]) == batch_analyze.CSV_FIELDS
    assert [r["status"] for r in rows] == ["SUCCESS", "SUCCESS", "EMPTY"]
    assert rows[0]["threat_level"] == "Safe"


def test_main_exit_codes(tmp_path):
    assert batch_analyze.main([str(tmp_path / "nowhere")]) == 1

    write(tmp_path, "note.txt", "invoice attached")
    output = tmp_path / "results.csv"
    assert batch_analyze.main([str(tmp_path), "--output", str(output)]) == 0
    assert output.exists()
