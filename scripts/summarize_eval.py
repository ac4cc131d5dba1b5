"""
Summarize a run produced by run_eval.py.

    python scripts/summarize_eval.py --run eval/results/<timestamp>
"""
import argparse
import json
import glob
import os
import pandas as pd

def analyze_run(run_dir):
    results_files = glob.glob(os.path.join(run_dir, "*.jsonl"))

    all_metrics = []

    for filepath in results_files:
        tone = os.path.splitext(os.path.basename(filepath))[0]
        records = []
        with open(filepath, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    records.append(json.loads(line))

        if not records:
            continue

        df = pd.DataFrame(records)
        df["expected_crisis"] = df["expected"].apply(lambda x: bool(x.get("crisis")))
        df["detected"] = df["response"].apply(lambda r: bool(r and r.get("crisisDetected")))
        df["failed"] = df["error"].notna()

        answered = df[~df["failed"]]

        # 1. Recall over prompts that should raise an alert
        positives = answered[answered["expected_crisis"]]
        recall = positives["detected"].mean() if len(positives) > 0 else 0

        # 2. False positives over prompts that should not
        negatives = answered[~answered["expected_crisis"]]
        false_positive_rate = negatives["detected"].mean() if len(negatives) > 0 else 0

        # 3. Tone echoed back as requested
        tone_ok = answered["response"].apply(lambda r: r.get("tone") == tone).mean() if len(answered) > 0 else 0

        metrics = {
            "Tone": tone,
            "Crisis Recall": f"{recall:.1%}",
            "False Positive Rate": f"{false_positive_rate:.1%}",
            "Tone Match": f"{tone_ok:.1%}",
            "Errors": int(df["failed"].sum()),
            "Avg Latency (ms)": int(df["latency_ms"].mean()),
            "P95 Latency (ms)": int(df["latency_ms"].quantile(0.95)),
            "Total Prompts": len(df)
        }
        all_metrics.append(metrics)

    if not all_metrics:
        print(f"No results found in {run_dir}")
        return

    summary_df = pd.DataFrame(all_metrics).sort_values("Tone")

    csv_path = os.path.join(run_dir, "summary.csv")
    md_path = os.path.join(run_dir, "summary.md")

    summary_df.to_csv(csv_path, index=False)

    # markdown table without tabulate
    def to_markdown(df):
        cols = df.columns
        md = "| " + " | ".join(cols) + " |\n"
        md += "| " + " | ".join(["---"] * len(cols)) + " |\n"
        for _, row in df.iterrows():
            md += "| " + " | ".join(str(row[c]) for c in cols) + " |\n"
        return md

    markdown_table = to_markdown(summary_df)

    with open(md_path, "w", encoding="utf-8") as f:
        f.write("# Crisis Screening Evaluation\n\n")
        f.write(f"Run ID: {os.path.basename(run_dir)}\n\n")
        f.write(markdown_table)
        f.write("\n\n## Metrics Dictionary\n")
        f.write("- **Crisis Recall**: Share of risk prompts answered with crisisDetected=true.\n")
        f.write("- **False Positive Rate**: Share of non-risk prompts flagged as crisis.\n")
        f.write("- **Tone Match**: Share of replies reporting the requested tone.\n")
        f.write("- **Errors**: Requests that did not return HTTP 200.\n")

    print(f"Summary generated at: {md_path}")
    print(markdown_table)

if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--run", required=True, help="Path to run directory")
    args = parser.parse_args()

    analyze_run(args.run)
