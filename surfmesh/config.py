# Copyright 2024, m3shware
#
# Permission is hereby granted, free of charge, to any person obtaining a
# copy of this software and associated documentation files (the "Software"),
# to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense,
# and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
# IN THE SOFTWARE.

""" Algorithm configuration.

One validated configuration model per mesh processing algorithm. Each
algorithm entry point accepts its model as optional argument. Default
constructed models reproduce the default behavior of the algorithm.

.. code-block:: python

    config = SmoothingConfig(iterations=5, uniform_laplace=True)
    smoothing.explicit(mesh, config)

Invalid values raise :class:`pydantic.ValidationError` when the model
is constructed, never inside an algorithm.
"""

import math
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class SmoothingConfig(BaseModel):
    """ Laplacian smoothing parameters.
    """

    iterations: int = Field(
        default=10,
        ge=1,
        le=10000,
        description="Number of explicit smoothing steps",
    )
    timestep: float = Field(
        default=0.001,
        gt=0.0,
        description="Time step of implicit smoothing",
    )
    uniform_laplace: bool = Field(
        default=False,
        description="Uniform instead of cotangent Laplace weights",
    )
    tangential: bool = Field(
        default=False,
        description="Restrict explicit updates to the input tangent planes",
    )
    rescale: bool = Field(
        default=True,
        description="Restore surface area and barycenter after implicit "
                    "smoothing of closed meshes",
    )


class FairingConfig(BaseModel):
    """ Fairing parameters.

    The order k selects the energy: 1 minimizes area, 2 curvature, 3
    the variation of curvature.
    """

    order: int = Field(
        default=2,
        ge=1,
        le=3,
        description="Power of the Laplace operator",
    )
    uniform_laplace: bool = Field(
        default=False,
        description="Uniform instead of cotangent Laplace weights",
    )


class RemeshingConfig(BaseModel):
    """ Remeshing parameters.

    Uniform remeshing needs `edge_length`. Adaptive remeshing needs
    `min_edge_length`, `max_edge_length`, and `approx_error`.
    """

    edge_length: float | None = Field(
        default=None,
        gt=0.0,
        description="Target edge length of uniform remeshing",
    )
    min_edge_length: float | None = Field(
        default=None,
        gt=0.0,
        description="Lower bound of adaptive target edge lengths",
    )
    max_edge_length: float | None = Field(
        default=None,
        gt=0.0,
        description="Upper bound of adaptive target edge lengths",
    )
    approx_error: float | None = Field(
        default=None,
        gt=0.0,
        description="Maximal distance of an edge to the curved surface",
    )
    iterations: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Maximal number of split/collapse/flip/relax passes",
    )
    use_projection: bool = Field(
        default=True,
        description="Project relaxed vertices onto the input surface",
    )

    @model_validator(mode='after')
    def check_bounds(self):
        lo = self.min_edge_length
        hi = self.max_edge_length

        if lo is not None and hi is not None and lo > hi:
            raise ValueError('min_edge_length exceeds max_edge_length')

        return self


class SimplificationConfig(BaseModel):
    """ Decimation parameters.

    Constraints with value zero are disabled.
    """

    target_vertices: int = Field(
        ge=0,
        description="Number of vertices to decimate to",
    )
    aspect_ratio: float = Field(
        default=0.0,
        ge=0.0,
        description="Reject collapses producing triangles whose ratio of "
                    "longest edge to smallest height exceeds this value",
    )
    edge_length: float = Field(
        default=0.0,
        ge=0.0,
        description="Reject collapses producing longer edges",
    )
    max_valence: int = Field(
        default=0,
        ge=0,
        description="Reject collapses producing vertices of higher degree",
    )
    normal_deviation: float = Field(
        default=0.0,
        ge=0.0,
        le=180.0,
        description="Maximal normal deviation in degrees",
    )
    hausdorff_error: float = Field(
        default=0.0,
        ge=0.0,
        description="Maximal distance of original sample points to the "
                    "simplified surface",
    )


class HoleFillingConfig(BaseModel):
    """ Hole filling parameters.
    """

    max_hole_size: int = Field(
        default=500,
        ge=3,
        description="Holes with more boundary halfedges are skipped",
    )
    refine: bool = Field(
        default=True,
        description="Remesh patch triangles to the mean boundary edge length",
    )
    fair: bool = Field(
        default=True,
        description="Minimize curvature of the refined patch",
    )


class StitchingConfig(BaseModel):
    """ Border stitching parameters.
    """

    tolerance: float | None = Field(
        default=None,
        ge=0.0,
        description="Maximal distance of coincident vertices (None = "
                    "1e-6 times the bounding box diagonal)",
    )
    merge_reversible: bool = Field(
        default=True,
        description="Reorient components that only fit after reversal",
    )


class ParameterizationConfig(BaseModel):
    """ Parameterization parameters.
    """

    uniform_weights: bool = Field(
        default=False,
        description="Uniform instead of cotangent weights (harmonic map)",
    )


class GeodesicConfig(BaseModel):
    """ Geodesic distance propagation parameters.
    """

    max_distance: float = Field(
        default=math.inf,
        gt=0.0,
        description="Stop propagation beyond this distance",
    )
    max_vertices: float = Field(
        default=math.inf,
        ge=1,
        description="Stop after this many vertices have been finalized",
    )
    use_virtual_edges: bool = Field(
        default=True,
        description="Unfold neighboring triangles at obtuse angles",
    )


class SamplingConfig(BaseModel):
    """ Surface sampling parameters.
    """

    n_points: int = Field(
        ge=0,
        description="Number of sample points",
    )
    seed: int | None = Field(
        default=None,
        description="Random seed (None = fresh entropy)",
    )


class PolygonizationConfig(BaseModel):
    """ Polygonization parameters.
    """

    angle_threshold: float = Field(
        default=1.0,
        ge=0.0,
        lt=90.0,
        description="Faces whose normals differ less (degrees) are merged",
    )


class FeatureConfig(BaseModel):
    """ Feature detection parameters.
    """

    angle: float = Field(
        default=60.0,
        gt=0.0,
        lt=180.0,
        description="Dihedral angle (degrees) above which edges are creases",
    )
    boundary: bool = Field(
        default=False,
        description="Mark boundary edges as features",
    )


class Objective(str, Enum):
    """ Triangulation objective.
    """

    MIN_AREA = "min_area"
    MAX_ANGLE = "max_angle"
