#!/usr/bin/env python3
"""
Evaluate dish extraction on saved Word Source samples.

Each sample is a pair in the samples directory:
  <name>.words.json  Word Source response
  <name>.gt.json     {"items": [{"title": "...", "prices": ["..."]}, ...]}
"""

import sys
import json
import argparse
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from menuscan.ocr.sources import JsonWordSource
from menuscan.pipeline import MenuPipeline, PipelineConfig


def load_ground_truth(json_path: Path) -> list[dict]:
    """Load ground truth dishes."""
    with open(json_path, encoding="utf-8") as f:
        return json.load(f).get("items", [])


def fuzzy_match(pred_name: str, gt_name: str, threshold: float = 0.5) -> bool:
    """Check if two names are similar enough."""
    pred_words = set(pred_name.lower().split())
    gt_words = set(gt_name.lower().split())

    if not pred_words or not gt_words:
        return False

    intersection = len(pred_words & gt_words)
    union = len(pred_words | gt_words)

    return intersection / union >= threshold


def evaluate_sample(pred_items: list[dict], gt_items: list[dict]) -> dict:
    """Evaluate predicted dishes against ground truth."""
    matched = 0
    price_correct = 0

    matched_gt = set()
    for pred in pred_items:
        for i, gt in enumerate(gt_items):
            if i in matched_gt:
                continue
            if fuzzy_match(pred.get("title", ""), gt.get("title", "")):
                matched += 1
                matched_gt.add(i)
                if pred.get("prices", []) == gt.get("prices", []):
                    price_correct += 1
                break

    precision = matched / len(pred_items) if pred_items else 0
    recall = matched / len(gt_items) if gt_items else 0
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) else 0
    price_acc = price_correct / matched if matched else 0

    return {
        "predicted_items": len(pred_items),
        "ground_truth_items": len(gt_items),
        "matched": matched,
        "precision": precision,
        "recall": recall,
        "f1": f1,
        "price_accuracy": price_acc,
    }


def find_samples(samples_dir: Path) -> list[tuple[Path, Path]]:
    samples = []
    for words_path in sorted(samples_dir.glob("*.words.json")):
        gt_path = words_path.with_name(words_path.name.replace(".words.json", ".gt.json"))
        if gt_path.exists():
            samples.append((words_path, gt_path))
    return samples


def main():
    parser = argparse.ArgumentParser(description="Score dish extraction against ground truth")
    parser.add_argument("--samples", "-s", type=Path, default=Path("data/samples"),
                        help="Directory with *.words.json / *.gt.json pairs")
    parser.add_argument("--output", "-o", type=Path, default=Path("output"),
                        help="Directory for predictions and the summary")
    parser.add_argument("--remote", action="store_true",
                        help="Use the remote classifier (needs credentials)")
    args = parser.parse_args()

    samples = find_samples(args.samples)
    if not samples:
        print("No samples found!")
        return

    print(f"Found {len(samples)} samples")
    print(f"Classifier: {'remote with fallback' if args.remote else 'heuristic'}")
    print()

    args.output.mkdir(parents=True, exist_ok=True)
    pipeline = MenuPipeline(PipelineConfig.from_env(use_remote=args.remote))

    results = []

    for words_path, gt_path in samples:
        name = words_path.name.replace(".words.json", "")
        print(f"Processing: {name}")

        result = pipeline.analyze_image(None, JsonWordSource(words_path))
        output = result.to_output_json()

        pred_output = args.output / f"{name}_pred.json"
        with open(pred_output, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)

        metrics = evaluate_sample(output["items"], load_ground_truth(gt_path))
        metrics["sample"] = name
        metrics["classifier"] = result.classifier_source
        metrics["processing_time_ms"] = result.processing_time_ms
        results.append(metrics)

        print(f"  Items: {metrics['predicted_items']} pred / {metrics['ground_truth_items']} gt / {metrics['matched']} matched")
        print(f"  F1: {metrics['f1']:.2%}, Price Acc: {metrics['price_accuracy']:.2%}")
        print(f"  Time: {metrics['processing_time_ms']:.1f}ms ({metrics['classifier']})")
        print()

    # Aggregate
    avg_f1 = sum(r["f1"] for r in results) / len(results)
    avg_precision = sum(r["precision"] for r in results) / len(results)
    avg_recall = sum(r["recall"] for r in results) / len(results)
    avg_price_acc = sum(r["price_accuracy"] for r in results) / len(results)
    avg_time = sum(r["processing_time_ms"] for r in results) / len(results)

    print("=" * 60)
    print("AGGREGATE RESULTS")
    print("=" * 60)
    print(f"Average Precision: {avg_precision:.2%}")
    print(f"Average Recall:    {avg_recall:.2%}")
    print(f"Average F1:        {avg_f1:.2%}")
    print(f"Price Accuracy:    {avg_price_acc:.2%}")
    print(f"Avg Processing:    {avg_time:.1f}ms")

    summary = {
        "classifier": "remote" if args.remote else "heuristic",
        "samples": results,
        "aggregate": {
            "precision": avg_precision,
            "recall": avg_recall,
            "f1": avg_f1,
            "price_accuracy": avg_price_acc,
            "avg_processing_ms": avg_time,
        }
    }

    with open(args.output / "evaluation_results.json", 'w') as f:
        json.dump(summary, f, indent=2)

    print(f"\nResults saved to {args.output}/evaluation_results.json")


if __name__ == "__main__":
    main()
