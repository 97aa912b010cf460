from .academic import AcademicYear, Course, Batch, Subject, BatchStudent
