from .fees import FeeStructure, FeeComponent
