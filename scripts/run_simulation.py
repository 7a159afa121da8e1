#!/usr/bin/env python3
"""Helper script to generate a synthetic report and register it locally."""
import argparse
import os
import subprocess

parser = argparse.ArgumentParser()
parser.add_argument("--out", required=True)
parser.add_argument("--scanners", type=int, default=5)
parser.add_argument("--seed", type=int, default=None)
args = parser.parse_args()

out_dir = os.path.abspath(args.out)

# run generator
generate = ["python3", "-m", "simulation.generate_synthetic", "--out", out_dir, "--scanners", str(args.scanners)]
if args.seed is not None:
    generate += ["--seed", str(args.seed)]
subprocess.check_call(generate)
# run registration
subprocess.check_call(["python3", "-m", "registration.pipeline", "--report", os.path.join(out_dir, "report.txt")])
print("Done. ground truth in:", os.path.join(out_dir, "ground_truth.json"))
