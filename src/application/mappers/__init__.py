"""Mapper functions for application layer."""

from application.mappers.resource_mapper import allocation_result_to_dict, record_to_dict

__all__ = ["allocation_result_to_dict", "record_to_dict"]
