#!/usr/bin/env python3
"""
Canonical renderer tool with debug outputs, fingerprinting, and param tracing.

Usage:
    python tools/render.py <subcommand> [options]

Subcommands:
    record [params_json]         Preview + recording + DAC for one set of params
    bit-depth-sweep              Record 8/16/24-bit PCM and mu-law, compare SNR with theory
    dac-compare                  Render ZeroOrderHold vs Linear (with/without smoothing)
    size                         Storage per minute for a recording format

Options:
    --seed <int>         Fixed seed (default: random)
    --debug              Save resolved.json with param trace
    --qc                 Run fidelity analysis
    --output-dir <path>  Output directory (default: unique timestamped dir)
"""
import sys
import os
import copy
import json
import argparse
import logging
from pathlib import Path

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tools.render_core import render_session, get_unique_output_dir
from audiolab.export.exporter import size_summary


def _load_params(path):
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _print_qc(qc):
    print(f"QC Status: {qc['status']}")
    if qc['failures']:
        print("  FAILURES:")
        for f in qc['failures']:
            print(f"    - {f}")
    if qc['warnings']:
        print("  WARNINGS:")
        for w in qc['warnings']:
            print(f"    - {w}")


def cmd_record(args):
    """Render one session."""
    params = _load_params(args.params_json)
    output_dir = Path(args.output_dir) if args.output_dir else get_unique_output_dir("record")
    filename = args.filename or "session"

    _, debug_info = render_session(
        params,
        output_dir,
        filename,
        seed=args.seed,
        debug=args.debug,
        qc=args.qc,
        bundle=args.bundle,
        script_name="render.py record",
    )

    # Print summary
    print(f"\n=== Render Complete ===")
    print(f"Encoding: {debug_info['encoding']}")
    print(f"Recording: {debug_info['wav_paths']['recording']}")
    print(f"DAC: {debug_info['wav_paths']['dac']}")
    print(f"Seed: {debug_info['seed']}")
    print(f"SNR: {debug_info['snr_db']:.1f} dB (theory {debug_info['theoretical_snr_db']:.1f} dB)")
    fp = debug_info['fingerprints']['dac']
    print(f"DAC SHA256: {fp['sha256'][:16]}...  Peak: {fp['peak']:.4f}, RMS: {fp['rms']:.4f}")

    if args.debug:
        print(f"Debug JSON: {output_dir / f'{filename}.resolved.json'}")
    if debug_info['zip_path']:
        print(f"Bundle: {debug_info['zip_path']}")
    if args.qc and debug_info.get('qc_result'):
        _print_qc(debug_info['qc_result'])
        if debug_info['qc_result']['status'] == "FAIL":
            return 1

    return 0


def cmd_bit_depth_sweep(args):
    """Record the same params at every supported encoding."""
    base = _load_params(args.params_json)
    output_dir = Path(args.output_dir) if args.output_dir else get_unique_output_dir("bit_depth_sweep")
    seed = 42 if args.seed is None else args.seed

    print(f"Running bit-depth sweep to {output_dir}\n")
    print(f"{'encoding':<14}{'measured':>12}{'theory':>12}{'size/min':>14}")

    failures = []
    variants = [(8, "None"), (16, "None"), (24, "None"), (8, "μ-law")]
    for bits, compression in variants:
        params = copy.deepcopy(base)
        recording = params.setdefault("recording", {})
        recording["bit_depth"] = bits
        recording["compression"] = compression
        label = f"{bits}bit" if compression == "None" else "ulaw"

        result, info = render_session(
            params, output_dir, label,
            seed=seed, debug=args.debug, qc=True,
            script_name="render.py bit-depth-sweep",
        )
        session = result.session
        size = size_summary(session.sample_rate, session.quantization.effective_bits, session.channels)
        print(f"{session.encoding:<14}{session.snr_db:>10.1f}dB{session.theoretical_snr_db:>10.1f}dB  {size.split(' / ')[0]:>12}")
        if info['qc_result']['status'] == "FAIL":
            failures.append(session.encoding)

    if failures:
        print(f"\nFAILED: {', '.join(failures)}")
        return 1
    return 0


def cmd_dac_compare(args):
    """Check that reconstruction method and smoothing each change the DAC output."""
    base = _load_params(args.params_json)
    output_dir = Path(args.output_dir) if args.output_dir else get_unique_output_dir("dac_compare")
    seed = 42 if args.seed is None else args.seed

    print(f"Rendering DAC variants to {output_dir}\n")
    hashes = {}
    for method in ("ZeroOrderHold", "Linear"):
        for lowpass_hz in (0.0, 8000.0):
            params = copy.deepcopy(base)
            dac = params.setdefault("dac", {})
            dac["method"] = method
            dac["lowpass_hz"] = lowpass_hz
            name = f"{method.lower()}_lp{int(lowpass_hz)}"
            _, info = render_session(
                params, output_dir, name,
                seed=seed, debug=args.debug, qc=False,
                script_name="render.py dac-compare",
            )
            fp = info['fingerprints']['dac']
            hashes[name] = fp['sha256']
            print(f"  {name:<24} {fp['sha256'][:12]}  image energy {fp['image_energy_ratio']:.3e}")

    if len(set(hashes.values())) != len(hashes):
        print("\nFAIL: Some DAC variants rendered identically (no-op setting)")
        return 1
    print("\nPASS: All DAC variants differ")
    return 0


def cmd_size(args):
    print(size_summary(args.sample_rate, args.bit_depth, args.channels))
    return 0


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(description="Audio sandbox renderer with debug outputs")
    subparsers = parser.add_subparsers(dest="command", help="Subcommand")

    def add_common_args(p):
        p.add_argument("params_json", nargs="?", help="JSON file with session params (optional)")
        p.add_argument("--seed", type=int, default=None, help="Fixed seed (default: random)")
        p.add_argument("--debug", action="store_true", help="Save resolved.json with param trace")
        p.add_argument("--output-dir", type=str, help="Output directory (default: unique timestamped)")

    # record subcommand
    p_rec = subparsers.add_parser("record", help="Render preview, recording and DAC")
    add_common_args(p_rec)
    p_rec.add_argument("--qc", action="store_true", help="Run fidelity analysis")
    p_rec.add_argument("--bundle", action="store_true", help="Also write the session zip")
    p_rec.add_argument("--filename", type=str, help="Output base filename")

    # bit-depth-sweep subcommand
    p_sweep = subparsers.add_parser("bit-depth-sweep", help="Compare SNR across encodings")
    add_common_args(p_sweep)

    # dac-compare subcommand
    p_dac = subparsers.add_parser("dac-compare", help="Render DAC method/smoothing variants")
    add_common_args(p_dac)

    # size subcommand
    p_size = subparsers.add_parser("size", help="Storage per minute")
    p_size.add_argument("--sample-rate", type=int, default=44100)
    p_size.add_argument("--bit-depth", type=int, default=16)
    p_size.add_argument("--channels", type=int, choices=[1, 2], default=1)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "record":
        return cmd_record(args)
    elif args.command == "bit-depth-sweep":
        return cmd_bit_depth_sweep(args)
    elif args.command == "dac-compare":
        return cmd_dac_compare(args)
    elif args.command == "size":
        return cmd_size(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
