from capacity_model.persistence.parameters_io import (
    ParameterValidationError,
    load_parameters,
    parameters_from_dict,
    save_parameters,
    validate_document,
)

__all__ = [
    'ParameterValidationError',
    'load_parameters',
    'parameters_from_dict',
    'save_parameters',
    'validate_document',
]
