from world_state.extraction.extractor import StateExtractor, parse_quantity

__all__ = ["StateExtractor", "parse_quantity"]
