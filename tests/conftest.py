import pytest

KUBECONFIG = """\
apiVersion: v1
kind: Config
preferences:
  colors: true
clusters:
- name: clstrA
  cluster:
    server: https://a.example.com
    certificate-authority-data: QUJD
- name: clstrB
  cluster:
    server: https://b.example.com
contexts:
- name: cntxB
  aws-profile: live
  context:
    cluster: clstrB
    user: userB
    namespace: bbbbb
- name: minikube
  context:
    cluster: minikube
    user: minikube
- name: cntxA
  aws-profile: live
  context:
    cluster: clstrA
    user: userA
    namespace: aaaaa
- name: cntxC
  aws-profile: dev
  context:
    cluster: clstrC
    user: userC
    namespace: ccccc
current-context: cntxB
users:
- name: userA
  user:
    token: secret-token
"""

CREDENTIALS = """\
[live]
aws_access_key_id = LIVEKEY
aws_secret_access_key = LIVESECRET

[dev]
aws_access_key_id = DEVKEY
aws_secret_access_key = DEVSECRET

[anotherprofile]
aws_access_key_id = OTHERKEY
aws_secret_access_key = OTHERSECRET

[default]
aws_access_key_id = LIVEKEY
aws_secret_access_key = LIVESECRET
"""


@pytest.fixture
def kubeconfig_path(tmp_path):
    """Kube config with cntxA/cntxB (live), cntxC (dev) and minikube (no profile)"""
    path = tmp_path / "config"
    path.write_text(KUBECONFIG)
    return path


@pytest.fixture
def credentials_path(tmp_path):
    """Credentials file with live, dev and anotherprofile; live is active"""
    path = tmp_path / "credentials"
    path.write_text(CREDENTIALS)
    return path
