"""
Run the crisis-screening prompt set against a running /ai-chat endpoint.

    python scripts/run_eval.py --token <supabase-jwt> --tones profesional,relajado

Each tone gets its own session per prompt so history does not leak between prompts.
"""
import argparse
import json
import time
import requests
import os
from datetime import datetime

TONES = ["profesional", "motivador", "relajado"]

def run_prompt(prompt, api_base, tone, token):
    url = f"{api_base.rstrip('/')}/ai-chat"
    session_id = f"eval-{tone}-{prompt['id']}"

    payload = {
        "message": prompt["message"],
        "tone": tone,
        "sessionId": session_id
    }
    headers = {"Authorization": f"Bearer {token}"}

    start_time = time.time()
    try:
        response = requests.post(url, json=payload, headers=headers, timeout=60)
        latency_ms = (time.time() - start_time) * 1000

        if response.status_code == 200:
            data = response.json()
            error = None
        else:
            data = None
            error = f"HTTP {response.status_code}: {response.text}"

    except requests.RequestException as e:
        latency_ms = (time.time() - start_time) * 1000
        data = None
        error = str(e)

    return {
        "timestamp": datetime.now().isoformat(),
        "prompt_id": prompt["id"],
        "category": prompt["category"],
        "message": prompt["message"],
        "expected": prompt.get("expected", {}),
        "tone": tone,
        "latency_ms": latency_ms,
        "response": data,
        "error": error
    }

def main():
    parser = argparse.ArgumentParser(description="Run crisis screening evaluation")
    parser.add_argument("--api-base", default="http://127.0.0.1:8000")
    parser.add_argument("--prompts", default="eval/crisis_prompts.jsonl")
    parser.add_argument("--out", default="eval/results")
    parser.add_argument("--tones", default=",".join(TONES), help="Comma-separated list of tones to run")
    parser.add_argument("--token", default=os.environ.get("EVAL_ACCESS_TOKEN"), help="Supabase access token (or EVAL_ACCESS_TOKEN)")
    parser.add_argument("--limit", type=int, default=None)

    args = parser.parse_args()
    if not args.token:
        parser.error("--token or EVAL_ACCESS_TOKEN is required")

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = os.path.join(args.out, timestamp)
    os.makedirs(run_dir, exist_ok=True)
    print(f"Starting Run: {timestamp}")
    print(f"Output Directory: {run_dir}")

    prompts = []
    with open(args.prompts, "r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                prompts.append(json.loads(line))

    if args.limit:
        prompts = prompts[:args.limit]

    for tone in args.tones.split(","):
        print(f"Running tone: {tone}...")
        results_file = os.path.join(run_dir, f"{tone}.jsonl")

        with open(results_file, "w", encoding="utf-8") as f_out:
            for i, prompt in enumerate(prompts):
                print(f"  [{i+1}/{len(prompts)}] {prompt['id']}...", end="\r")
                res = run_prompt(prompt, args.api_base, tone, args.token)
                f_out.write(json.dumps(res, ensure_ascii=False) + "\n")
                f_out.flush()
        print(f"\n  Completed {tone}.")

    print("Evaluation Complete.")

if __name__ == "__main__":
    main()
