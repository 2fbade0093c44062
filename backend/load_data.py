"""
Data Loader Script - seeds sample students into the service via the API.

Reads a JSON array of student payloads and POSTs each one to
/api/students. Without a data file a small built-in sample is used.

Usage:
    python load_data.py                                  # Uses default URL
    python load_data.py http://localhost:8000            # Custom API URL
    python load_data.py http://localhost:8000 data.json  # Custom data file
"""

import json
import os
import sys

import httpx

SAMPLE_STUDENTS = [
    {
        "firstName": "Ada", "lastName": "Lovelace", "studentId": "S1001",
        "email": "ada.lovelace@example.com", "dateOfBirth": "1990-12-10",
        "contactNumber": "555-0101", "enrollmentDate": "2020-09-01",
    },
    {
        "firstName": "Alan", "lastName": "Turing", "studentId": "S1002",
        "email": "alan.turing@example.com", "dateOfBirth": "1991-06-23",
        "contactNumber": "555-0102", "enrollmentDate": "2020-09-01",
    },
    {
        "firstName": "Grace", "lastName": "Hopper", "studentId": "S1003",
        "email": "grace.hopper@example.com", "dateOfBirth": "1992-12-09",
        "contactNumber": "555-0103", "enrollmentDate": "2021-01-15",
        "status": "Graduated",
    },
    {
        "firstName": "Edsger", "lastName": "Dijkstra", "studentId": "S1004",
        "email": "edsger.dijkstra@example.com", "dateOfBirth": "1993-05-11",
        "contactNumber": "555-0104", "enrollmentDate": "2021-09-01",
    },
]


def load_students(data_file):
    """Return the list of payloads from data_file, or the built-in sample."""
    if data_file and os.path.exists(data_file):
        print(f"Loading data from: {data_file}")
        with open(data_file, 'r') as f:
            return json.load(f)
    print("No data file found, using built-in sample students")
    return SAMPLE_STUDENTS


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")
    data_file = sys.argv[2] if len(sys.argv) > 2 else os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "students.json")
    students_url = f"{api_url}/api/students"

    students = load_students(data_file)
    print(f"Sending {len(students)} students to: {students_url}")
    print()

    created = conflicts = rejected = 0
    with httpx.Client(timeout=30.0) as client:
        for payload in students:
            label = payload.get("studentId", "?")
            resp = client.post(students_url, json=payload)
            body = resp.json()
            if resp.status_code == 201:
                created += 1
                print(f"  ✅ {label}: created ({body['student']['id']})")
            elif resp.status_code == 409:
                conflicts += 1
                print(f"  🔁 {label}: {body.get('message')}")
            else:
                rejected += 1
                reasons = "; ".join(e["message"] for e in body.get("errors", [])) or body.get("message", "")
                print(f"  ❌ {label}: HTTP {resp.status_code} {reasons}")

    print()
    print("=" * 60)
    print("SEED SUMMARY")
    print("=" * 60)
    print(f"  Created:   {created}")
    print(f"  Conflicts: {conflicts}")
    print(f"  Rejected:  {rejected}")
    print("=" * 60)


if __name__ == "__main__":
    main()
