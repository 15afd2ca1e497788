"""
Pipeline stages package.

Each stage module follows a consistent pattern:
- Docstring with Purpose and Input/Output files documented
- Pure DataFrame functions that tests call directly
- main() function as the file-to-file entry point
"""
