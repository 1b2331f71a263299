from schoolportal.core.models.school import School
from schoolportal.core.models.administration import Administration
from schoolportal.core.models.teacher import Teacher
from schoolportal.core.models.parent import Parent
from schoolportal.core.models.class_model import SchoolClass
from schoolportal.core.models.student import Student
from schoolportal.core.models.subject import Subject, subject_teachers
from schoolportal.core.models.lesson import Lesson
from schoolportal.core.models.attendance import Attendance
from schoolportal.core.models.announcement import Announcement
from schoolportal.core.models.event import Event
from schoolportal.core.models.term import Term

__all__ = [
    "Administration",
    "Announcement",
    "Attendance",
    "Event",
    "Lesson",
    "Parent",
    "School",
    "SchoolClass",
    "Student",
    "Subject",
    "subject_teachers",
    "Teacher",
    "Term",
]
