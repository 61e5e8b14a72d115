"""Class timetable importer and daily study planner."""
