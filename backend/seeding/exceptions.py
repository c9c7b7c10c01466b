"""Errors raised by the texture seeding pipeline"""


class TexturePipelineError(Exception):
    """Base class for pipeline errors"""


class NoMaterialCategoriesError(TexturePipelineError):
    """The catalog has no material category a new texture could be filed under"""


class TextureMatchError(TexturePipelineError):
    """The AI semantic-match call failed or returned an unusable response"""


class ImageGenerationError(TexturePipelineError):
    """The external image-generation service failed"""
