"""stackdeploy - single-droplet notes stack deployment"""

__version__ = "1.0.0"
