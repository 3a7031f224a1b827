"""Script to push sample form submissions through a running API"""
import requests
import json
import sys
from pathlib import Path

API_BASE_URL = "http://localhost:8000/api"

SAMPLE_SUBMISSIONS = [
    {
        "origin": "Familles – FR",
        "answers": {
            "Nom de famille": "Dupont",
            "Prénom de la personne à contacter": "Jean",
            "Numéro de téléphone de la personne à contacter": "06 12 34 56 78",
            "Email address": "jean.dupont@example.com",
            "Adresse": "1 Rue de la Paix",
            "Code postale": "44000",
            "Ville": "Nantes",
            "Combien d'adultes vivent actuellement dans votre foyer ?": "2",
            "Combien d'enfants vivent actuellement dans votre foyer ?": "1",
            "Justificatif d'identité ou de résidence": "https://drive.google.com/open?id=sample-identity-1",
        },
    },
    {
        "origin": "Familles – AR",
        "answers": {
            "اللقب": "Benali",
            "إسم الشخص الذي يمكن التواصل معه": "Samira",
            "رقم هاتف الشخص الذي يمكن التواصل معه": "0033698765432",
            "العنوان": "12 Boulevard Victor Hugo",
            "الرمز البريدي": "44200",
            "المدينة": "Nantes",
            "كم عدد البالغين الذين يعيشون حاليًا في منزلك؟": "1",
            "كم عدد الأطفال الذين يعيشون حاليًا في منزلك؟": "3",
            "إثبات الهوية أو الإقامة": "https://drive.google.com/file/d/sample-identity-2/view",
        },
    },
]


def submit(submission: dict):
    """Post one submission and print the outcome"""
    response = requests.post(f"{API_BASE_URL}/ingest", json=submission, timeout=20)

    if response.status_code == 200:
        outcome = response.json()
        print(f"✓ {outcome['action']}: family {outcome.get('family_id')}")
        for error in outcome.get("errors", []):
            print(f"  error: {error}")
        for warning in outcome.get("warnings", []):
            print(f"  warning: {warning}")
        return outcome
    else:
        print(f"✗ Error: {response.status_code}")
        print(response.text)
        return None


def main():
    print("=" * 60)
    print("FAMILY CASEWORK - SAMPLE SUBMISSIONS")
    print("=" * 60)

    submissions = SAMPLE_SUBMISSIONS
    if len(sys.argv) > 1:
        submissions = json.loads(Path(sys.argv[1]).read_text(encoding="utf-8"))

    for submission in submissions:
        submit(submission)

    response = requests.get(f"{API_BASE_URL}/exec", params={"action": "ping"}, timeout=20)
    if response.status_code == 200:
        print(f"\nAPI version {response.json()['version']} is up")


if __name__ == "__main__":
    main()
