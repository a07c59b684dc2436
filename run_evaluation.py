"""
Evaluate Experiment Snapshots

Runs one or more experiment snapshot files through the timeline, aggregation
and winner decision steps and prints a report.

Usage:
    # Evaluate a snapshot as of today
    python run_evaluation.py experiment.json

    # Evaluate as of a given day
    python run_evaluation.py experiment.json --as-of 2026-01-15

    # Force the end-of-test decision
    python run_evaluation.py experiment.json --completed

    # Machine-readable output
    python run_evaluation.py experiment.json --json
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from typing import List, Optional

from creative_ab.config import settings
from creative_ab.data.loaders import load_snapshot
from creative_ab.pipelines.evaluation import ExperimentEvaluation, evaluate_experiment


def print_report(evaluation: ExperimentEvaluation) -> None:
    """Human-readable summary of one evaluation."""
    decision = evaluation.decision
    perf = evaluation.performance

    print("\n" + "="*80)
    print(f"EXPERIMENT {evaluation.test_id}")
    print("="*80)
    print(f"Days elapsed: {evaluation.days_elapsed} | Completed: {evaluation.completed}")
    print(f"Live now: variant {evaluation.current.variant} "
          f"since {evaluation.current.since.isoformat()} ({evaluation.current.since_source})")

    print("\n📅 DAILY TIMELINE")
    print("-" * 80)
    for day in evaluation.daily:
        print(f"  {day.date}  {day.variant}  {day.source:<8}  "
              f"impr={day.impressions:>8.0f}  clicks={day.clicks:>6.0f}  ctr={day.ctr:.2f}%")

    print("\n📊 VARIANT PERFORMANCE")
    print("-" * 80)
    for variant in (perf.a, perf.b):
        print(f"  {variant.variant}: days={variant.exposure_days}  impr={variant.impressions:.0f}  "
              f"ctr={variant.ctr:.4f}%  wtpi={variant.wtpi:.6f}  score={variant.score:.6f}")
    if not perf.quality_available:
        print("  (no watch-time signal: score is normalized CTR only)")

    mode_emoji = {'auto': '🏆', 'pending': '⏳', 'inconclusive': '⚠️'}
    print(f"\n{mode_emoji[decision.winner_mode]} DECISION: {decision.winner_mode.upper()}")
    print(f"  Winner: {decision.winner_variant or '-'}")
    print(f"  Confidence: {decision.confidence:.4f} (p={decision.p_value:.6f})")
    print(f"  CTR delta: {decision.ctr_delta_pct_points:.4f}pp | Score delta: {decision.score_delta:.6f}")
    print(f"  Guardrails passed: {decision.guardrails_passed} "
          f"(min {decision.min_exposure_days_per_variant} exposure days per variant)")
    print(f"  Reason: {decision.reason}")
    if decision.review_required:
        print("  ✋ Manual review required")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Evaluate title/thumbnail A/B experiment snapshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Snapshot format:
  {"test": {"id": ..., "start_date": ..., "duration_days": ..., ...},
   "daily_results": [{"date": ..., "impressions": ..., "clicks": ...}, ...],
   "events": [{"variant": "A", "source": "test_created", "changed_at": ...}, ...]}

Thresholds come from CREATIVE_AB_* environment variables (see creative_ab.config).
        """
    )

    parser.add_argument('snapshots', nargs='+', help='Snapshot JSON file(s)')
    parser.add_argument(
        '--as-of',
        default=None,
        help='Evaluation day (ISO date, default: today UTC)'
    )
    parser.add_argument(
        '--completed',
        action='store_true',
        help='Treat the test as completed regardless of elapsed days'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print evaluations as JSON'
    )

    args = parser.parse_args(argv)

    as_of = args.as_of or datetime.now(timezone.utc).date().isoformat()
    config = settings.scoring_config()

    evaluations = []
    try:
        for path in args.snapshots:
            snapshot = load_snapshot(path)
            evaluations.append(evaluate_experiment(
                snapshot.test,
                snapshot.daily_rows,
                snapshot.events,
                config,
                as_of=as_of,
                test_completed=True if args.completed else None,
            ))
    except (OSError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([evaluation.to_dict() for evaluation in evaluations], indent=2))
    else:
        for evaluation in evaluations:
            print_report(evaluation)

    return 0


if __name__ == '__main__':
    sys.exit(main())
