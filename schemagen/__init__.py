import importlib

mod = "schemagen"
class LazyLoader:
    """
    Lazy loader for the schemagen functions to speed up startup time.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, func_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, func_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the functions and their corresponding module paths
_mappings = {
    "generate_schema": (f"{mod}.pytojsons", "generate_schema"),
    "convert_python_to_json_schema": (f"{mod}.pytojsons", "convert_python_to_json_schema"),
    "convert_python_to_json_schema_string": (f"{mod}.pytojsons", "convert_python_to_json_schema_string"),
    "verify_json_schema": (f"{mod}.pytojsons", "verify_json_schema"),
    "PythonToJsonSchemaConverter": (f"{mod}.pytojsons", "PythonToJsonSchemaConverter"),
    "PackageDescriptor": (f"{mod}.config", "PackageDescriptor"),
    "load_config": (f"{mod}.config", "load_config"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
