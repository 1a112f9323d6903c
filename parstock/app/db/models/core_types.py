import enum


class DedupMode(str, enum.Enum):
    update = "update"
    skip = "skip"


class EntityKind(str, enum.Enum):
    location = "location"
    material_type = "material_type"
    vendor = "vendor"


class ImportStage(str, enum.Enum):
    locations = "locations"
    material_types = "material_types"
    vendors = "vendors"
    products = "products"
    assignments = "assignments"
    on_hand = "on_hand"


class ErrorKind(str, enum.Enum):
    validation = "validation"
    conflict = "conflict"
    reference_not_found = "reference_not_found"
    storage = "storage"
