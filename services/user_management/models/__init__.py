from .schools import School
from .profiles import Identity, Profile
from .staff import StaffDetails
from .students import StudentDetails
