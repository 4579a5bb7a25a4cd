import argparse
import os
from collections import Counter
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv
from tqdm import tqdm

from plant_treatment.errors import TreatmentError
from plant_treatment.generation import DEFAULT_MODEL, DEFAULT_TEMPERATURE, GeminiClient, generate_treatment

DEFAULT_DISEASES = ["Powdery Mildew", "Early Blight", "Downy Mildew", "Black Rot", "Fusarium Wilt"]


def load_diseases(path: Path | None, names: list[str]) -> list[str]:
    diseases = list(names)
    if path is not None:
        diseases.extend(line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip())
    return diseases or DEFAULT_DISEASES


def check_disease(disease: str, client: GeminiClient, repeat: int) -> dict:
    failures: Counter = Counter()
    conformant = 0
    for _ in range(repeat):
        try:
            result = generate_treatment(disease, client)
        except TreatmentError as exc:
            failures[f"{exc.error} {exc.details or ''}".strip()] += 1
            continue
        conformant += 1
        # Re-check the invariant the model is asked to honour.
        if len(set(item.lower() for item in result.prevention)) != len(result.prevention):
            failures["Duplicate prevention measures"] += 1

    return {
        "disease": disease,
        "runs": repeat,
        "conformant": conformant,
        "rate": conformant / repeat if repeat else 0.0,
        "failures": dict(failures),
    }


def render_markdown(report_path: Path, model: str, details: list[dict]) -> None:
    summary_df = pd.DataFrame(
        [
            {
                "Disease": d["disease"],
                "Runs": d["runs"],
                "Conformant": d["conformant"],
                "Rate": f"{d['rate']:.2f}",
            }
            for d in details
        ]
    )

    lines: list[str] = []
    lines.append("# Treatment Schema Stability")
    lines.append("")
    lines.append(f"Model: `{model}`")
    lines.append("")
    lines.append("## Conformance")
    lines.append("")
    lines.append(summary_df.to_markdown(index=False))
    lines.append("")
    lines.append("## Failures")
    lines.append("")
    for detail in details:
        lines.append(f"### {detail['disease']}")
        lines.append("")
        if detail["failures"]:
            for reason, count in sorted(detail["failures"].items()):
                lines.append(f"- {count}x {reason}")
        else:
            lines.append("- none")
        lines.append("")

    report_path.write_text("\n".join(lines), encoding="utf-8")


def main():
    parser = argparse.ArgumentParser(description="Check that repeated treatment generations stay schema-conformant.")
    parser.add_argument("diseases", nargs="*", help="Disease names to check.")
    parser.add_argument("--diseases-file", type=Path, help="Text file with one disease name per line.")
    parser.add_argument("--repeat", type=int, default=3, help="Generations per disease.")
    parser.add_argument("--model", default=os.getenv("GEMINI_MODEL", DEFAULT_MODEL), help="Gemini model name.")
    parser.add_argument(
        "--temperature",
        type=float,
        default=float(os.getenv("GEMINI_TEMPERATURE", str(DEFAULT_TEMPERATURE))),
        help="Sampling temperature.",
    )
    parser.add_argument(
        "--report-md",
        type=Path,
        default=Path("reports/schema_stability_report.md"),
        help="Where to write the markdown report.",
    )
    args = parser.parse_args()

    load_dotenv()
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        parser.error("GEMINI_API_KEY is not set.")

    client = GeminiClient(api_key, model_name=args.model, temperature=args.temperature)
    diseases = load_diseases(args.diseases_file, args.diseases)

    details = [check_disease(d, client, args.repeat) for d in tqdm(diseases, desc="Checking diseases", unit="disease")]

    args.report_md.parent.mkdir(parents=True, exist_ok=True)
    render_markdown(args.report_md, args.model, details)

    total_runs = sum(d["runs"] for d in details)
    total_ok = sum(d["conformant"] for d in details)
    print("Conformant generations:", f"{total_ok}/{total_runs}")
    print("Report saved to:", args.report_md)


if __name__ == "__main__":
    main()
