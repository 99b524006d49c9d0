# Schemas package (re-export feature modules for stable imports)
from .appointments.appointment import *
from .doctors.doctor import *
from .common.common import *
