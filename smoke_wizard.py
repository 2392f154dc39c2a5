import requests
import sys

BASE_URL = "http://127.0.0.1:8000/api/v1"

PROBLEM = {
    "problem_text": "Two neighbouring countries are escalating tariffs and our export business "
                    "is caught in the middle. We must decide within a month whether to relocate production.",
    "urgency": "critical",
    "stakeholders": ["board", "suppliers", "employees"],
}


def smoke_wizard():
    # 1. Catalog
    res = requests.get(f"{BASE_URL}/models")
    if res.status_code != 200:
        print(f"Catalog failed: {res.text}")
        return False
    print(f"Catalog has {len(res.json())} models")

    # 2. Start a session
    res = requests.post(f"{BASE_URL}/wizard")
    session = res.json()
    session_id = session["id"]
    print(f"Started session {session_id} (stage: {session['stage']})")

    # 3. Submit the problem
    res = requests.post(f"{BASE_URL}/wizard/{session_id}/problem", json=PROBLEM)
    if res.status_code != 200:
        print(f"Analysis failed: {res.status_code} {res.text}")
        return False
    session = res.json()
    print(f"Domain: {session['submission']['domain']}")
    for rec in session["recommendations"]:
        print(f"  {rec['score']:>3}  {rec['model_name']}")

    # 4. Generate solutions for the top two
    top = [rec["model_id"] for rec in session["recommendations"][:2]]
    res = requests.post(f"{BASE_URL}/wizard/{session_id}/solutions", json={"model_ids": top})
    if res.status_code != 200:
        print(f"Solution generation failed: {res.status_code} {res.text}")
        return False
    session = res.json()
    print(f"Generated {len(session['solutions'])} solutions")
    print(f"Comparison: {session['comparison']['recommendation']}")

    # 5. Rate the first solution
    solution_id = session["solutions"][0]["id"]
    res = requests.post(f"{BASE_URL}/solutions/{solution_id}/rating", json={"rating": 4})
    print(f"Rating: {res.status_code} {res.json().get('performance_metrics')}")

    # 6. Export
    for fmt in ("json", "csv", "text", "pdf"):
        res = requests.get(f"{BASE_URL}/wizard/{session_id}/export", params={"format": fmt})
        print(f"Export {fmt}: {res.status_code} {res.headers.get('Content-Disposition')}")

    return True


if __name__ == "__main__":
    sys.exit(0 if smoke_wizard() else 1)
