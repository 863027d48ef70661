"""
Maps messy column names from enrollment spreadsheets to canonical internal names.
Canonical names are used throughout parsing and ingestion.
"""

EQUIVALENT_COLUMNS = {
    "email": [
        "email", "e-mail", "email address", "student email", "mail", "university email"
    ],

    "username": [
        "username", "user name", "login", "student id", "student number",
        "roll no", "roll number", "registration number", "prn"
    ],

    "name": [
        "name", "student name", "full name", "candidate", "candidate name"
    ],

    "department": [
        "department", "dept", "branch"
    ],

    "year": [
        "year", "academic year", "class"
    ],
}

# At least one of these must be present for rows to be matched to students.
IDENTIFIER_COLUMNS = ("email", "username")
