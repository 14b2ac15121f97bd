from slotkeep.engine.sections.base import SaveSection
from slotkeep.engine.sections.dict_section import DictSection, MetadataSection

__all__ = ["SaveSection", "DictSection", "MetadataSection"]
