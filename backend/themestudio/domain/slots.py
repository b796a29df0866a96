# Sections shared by every template of a store rather than owned by one.
GLOBAL_SLOTS = ("header", "footer", "announcement-bar")


def is_global_type(section_type):
    return section_type in GLOBAL_SLOTS
