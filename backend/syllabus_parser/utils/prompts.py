SYSTEM_PROMPT = """
You are an expert at parsing academic syllabi.

Rules:
1. Return ONLY valid JSON. No explanations, no markdown formatting.
2. Use null for any information that is not in the text.
3. Extract what you can find, don't make up information.
4. Keep the exact keys of the requested structure.
"""

RECORD_SCHEMA = """{
  "courseInfo": {
    "title": "Course title or null",
    "instructor": "Instructor name or null",
    "credits": "Number of credits or null",
    "semester": "Semester name or null",
    "year": "Academic year or null",
    "courseCode": "Course code or null",
    "department": "Department name or null"
  },
  "schedule": [
    {
      "day": "Day of week or null",
      "time": "Time or null",
      "location": "Location or null",
      "type": "lecture/lab/discussion/exam/office_hours or null",
      "description": "Description or null"
    }
  ],
  "assignments": [
    {
      "name": "Assignment name or null",
      "type": "homework/exam/project/quiz/paper/presentation or null",
      "dueDate": "YYYY-MM-DD format or null",
      "weight": "Percentage as number or null",
      "description": "Description or null",
      "instructions": "Instructions or null"
    }
  ],
  "gradingPolicy": {
    "breakdown": {"Component name": "Percentage as number"},
    "scale": {"Letter grade": "Score range"},
    "policies": ["Grading policy statement"]
  },
  "readings": [
    {
      "title": "Reading title or null",
      "author": "Author name or null",
      "required": "true/false or null",
      "week": "Week number or null",
      "chapter": "Chapter or null",
      "pages": "Page numbers or null",
      "type": "textbook/article/handout/online or null"
    }
  ],
  "policies": {
    "attendance": "Attendance policy or null",
    "late": "Late work policy or null",
    "academic_integrity": "Academic integrity policy or null",
    "technology": "Technology policy or null",
    "other": ["Other policy statement"]
  },
  "contacts": {
    "instructor": {
      "name": "Instructor name or null",
      "email": "Email or null",
      "phone": "Phone or null",
      "office": "Office location or null",
      "office_hours": "Office hours or null"
    },
    "tas": [
      {
        "name": "TA name or null",
        "email": "Email or null",
        "office_hours": "Office hours or null"
      }
    ]
  }
}"""

SECTION_INSTRUCTIONS = {
    "assignments": "Extract all assignments, exams, and due dates from this text. "
                   "Return as JSON array with name, type, dueDate, weight, description, instructions.",
    "schedule": "Extract class schedule information from this text. "
                "Return as JSON array with day, time, location, type, description.",
    "grading": "Extract grading policy and grade breakdown from this text. "
               "Return as JSON object with breakdown, scale, policies.",
    "readings": "Extract required and optional readings from this text. "
                "Return as JSON array with title, author, required, week, chapter, pages, type.",
}


def truncate_text(text: str, max_chars: int) -> str:
    """Keep the head of the document, where course info usually sits."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "\n[...truncated]"


def syllabus_extraction_prompt(text: str) -> str:
    return f"""Extract structured information from the following syllabus text and return it as valid JSON.

SYLLABUS TEXT:
{text}

CRITICAL: You must return ONLY valid JSON. No additional text, no explanations, no markdown formatting.

Return exactly this structure, with actual values extracted from the syllabus text:

{RECORD_SCHEMA}

IMPORTANT: Return ONLY the JSON object. Use null for missing information and [] for empty lists."""


def section_extraction_prompt(text: str, section: str) -> str:
    return f"""{SECTION_INSTRUCTIONS[section]}

TEXT:
{text}

Return ONLY valid JSON. Use null for missing values."""
