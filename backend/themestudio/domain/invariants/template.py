from ..exceptions import InvariantViolation
from ..positions import assert_contiguous
from ..slots import GLOBAL_SLOTS
from .section import assert_section


def assert_template(template, sections=None):
    sections = list(template.sections if sections is None else sections)

    assert_contiguous(sections, scope=f"template {template.template_type}")

    seen = set()
    for section in sections:
        key = (section.section_type, section.position)
        if key in seen:
            raise InvariantViolation(
                f"Duplicate {section.section_type} section at position {section.position}"
            )
        seen.add(key)
        assert_section(section)


def assert_global_sections(sections):
    sections = list(sections)
    assert_contiguous(sections, scope="global sections")

    slots = [section.global_slot for section in sections]
    for slot in slots:
        if slot not in GLOBAL_SLOTS:
            raise InvariantViolation(f"Unknown global slot: {slot}")
        if slots.count(slot) > 1:
            raise InvariantViolation(f"More than one override for global slot {slot}")

    for section in sections:
        assert_section(section)
