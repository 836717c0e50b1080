import torch
import unittest

from torchlm.lie_math.se3 import (
    skew_symmetric, se3_exp_map, se3_apply_delta, se3_normalize,
    transform_points, point_alignment_jacobian,
)
from torchlm.utils.misc import DEVICE, DEFAULT_DTYPE


class TestSE3Math(unittest.TestCase):
    """Tests for the SE(3) helpers used in pose refinement."""

    def setUp(self):
        self.identity_matrix = torch.eye(4, device=DEVICE, dtype=DEFAULT_DTYPE)
        self.delta_zero = torch.zeros(6, device=DEVICE, dtype=DEFAULT_DTYPE)
        self.delta_small = torch.tensor([0.01, 0.02, 0.03, 1e-10, 2e-10, 3e-10], device=DEVICE, dtype=DEFAULT_DTYPE)
        self.delta_large = torch.tensor([0.5, -0.2, 1.0, 0.1, -0.3, 0.2], device=DEVICE, dtype=DEFAULT_DTYPE)
        self.points = torch.tensor([[1.0, 0.0, 0.0], [0.0, 2.0, -1.0], [0.5, 0.5, 0.5]],
                                   device=DEVICE, dtype=DEFAULT_DTYPE)

    def test_skew_symmetric_cross_product(self):
        v = torch.tensor([1.0, -2.0, 3.0], device=DEVICE, dtype=DEFAULT_DTYPE)
        w = torch.tensor([0.5, 4.0, -1.0], device=DEVICE, dtype=DEFAULT_DTYPE)
        self.assertTrue(torch.allclose(skew_symmetric(v) @ w, torch.linalg.cross(v, w)))

    def test_exp_zero_is_identity(self):
        self.assertTrue(torch.allclose(se3_exp_map(self.delta_zero), self.identity_matrix))

    def test_exp_rotation_is_orthonormal(self):
        for delta in (self.delta_small, self.delta_large):
            R = se3_exp_map(delta)[:3, :3]
            self.assertTrue(torch.allclose(R @ R.T, torch.eye(3, device=DEVICE, dtype=DEFAULT_DTYPE), atol=1e-12))
            self.assertAlmostEqual(torch.linalg.det(R).item(), 1.0, places=12)

    def test_exp_pure_translation(self):
        """With no rotation the translation passes straight through."""
        T = se3_exp_map(self.delta_small)
        self.assertTrue(torch.allclose(T[:3, 3], self.delta_small[:3], atol=1e-9))

    def test_exp_batch(self):
        batch = torch.stack([self.delta_zero, self.delta_small, self.delta_large])
        T_batch = se3_exp_map(batch)
        self.assertEqual(T_batch.shape, (3, 4, 4))
        self.assertTrue(torch.allclose(T_batch[2], se3_exp_map(self.delta_large)))

    def test_apply_delta_does_not_modify_pose(self):
        pose = se3_exp_map(self.delta_large)
        before = pose.clone()
        se3_apply_delta(pose, self.delta_small)
        self.assertTrue(torch.equal(pose, before))

    def test_normalize(self):
        """A perturbed rotation is projected back onto SO(3) and the translation kept."""
        pose = se3_exp_map(self.delta_large)
        noisy = pose.clone()
        noisy[:3, :3] += 1e-4 * torch.ones(3, 3, device=DEVICE, dtype=DEFAULT_DTYPE)
        fixed = se3_normalize(noisy)
        R = fixed[:3, :3]
        self.assertTrue(torch.allclose(R @ R.T, torch.eye(3, device=DEVICE, dtype=DEFAULT_DTYPE), atol=1e-12))
        self.assertAlmostEqual(torch.linalg.det(R).item(), 1.0, places=10)
        self.assertTrue(torch.equal(fixed[:3, 3], noisy[:3, 3]))
        self.assertTrue(torch.allclose(fixed, pose, atol=1e-3))

    def test_point_alignment_jacobian_matches_finite_differences(self):
        pose = se3_exp_map(self.delta_large)
        q = transform_points(pose, self.points)
        J = point_alignment_jacobian(q)
        self.assertEqual(J.shape, (3, 6, 3))

        eps = 1e-6
        for k in range(6):
            step = torch.zeros(6, device=DEVICE, dtype=DEFAULT_DTYPE)
            step[k] = eps
            q_plus = transform_points(se3_apply_delta(pose, step), self.points)
            q_minus = transform_points(se3_apply_delta(pose, -step), self.points)
            numeric = (q_plus - q_minus) / (2 * eps)
            self.assertTrue(torch.allclose(J[:, k, :], numeric, atol=1e-6),
                            f"Column {k}: analytic {J[:, k, :]} vs numeric {numeric}")


if __name__ == '__main__':
    unittest.main()
