"""
GDC API client
==============
Thin wrapper around the NCI Genomic Data Commons REST API for the three
downloads the walkthrough needs: STAR gene counts, masked somatic mutation
MAFs and clinical case records.
"""

import logging
import os

import requests

from ..config import CONFIG

logger = logging.getLogger(__name__)

GDC_CONFIG = CONFIG['gdc']

EXPRESSION_FIELDS = [
    'file_id', 'file_name', 'cases.submitter_id',
    'cases.samples.submitter_id', 'cases.samples.sample_type',
    'cases.samples.portions.analytes.aliquots.submitter_id',
]
MUTATION_FIELDS = ['file_id', 'file_name', 'cases.submitter_id']
CASE_FIELDS = ['submitter_id', 'case_id']
CASE_EXPAND = ['demographic', 'diagnoses']


class GDCRequestError(RuntimeError):
    """A request to the GDC API failed or returned an unexpected payload."""


def build_filters(project_id, criteria=None, project_field='cases.project.project_id'):
    """
    Build a GDC 'and' filter restricting to a project plus any field criteria.

    Args:
        project_id (str): e.g. 'TCGA-LGG'.
        criteria (dict, optional): Field name -> value or list of values.
        project_field (str): Project field name; 'project.project_id' on the cases endpoint.
    """
    content = [{"op": "in", "content": {"field": project_field, "value": [project_id]}}]
    for field, value in (criteria or {}).items():
        values = value if isinstance(value, (list, tuple)) else [value]
        content.append({"op": "in", "content": {"field": field, "value": list(values)}})
    return {"op": "and", "content": content}


class GDCClient:
    """Searches and downloads open-access GDC files for one project."""

    def __init__(self, base_url=None, session=None, page_size=None,
                 search_timeout=None, download_timeout=None):
        self.base_url = (base_url or GDC_CONFIG['base_url']).rstrip('/')
        self.session = session or requests.Session()
        self.page_size = page_size or GDC_CONFIG['page_size']
        self.search_timeout = search_timeout or GDC_CONFIG['search_timeout']
        self.download_timeout = download_timeout or GDC_CONFIG['download_timeout']

    def _post(self, endpoint, payload):
        url = f"{self.base_url}/{endpoint}"
        try:
            r = self.session.post(url, json=payload, timeout=self.search_timeout)
            r.raise_for_status()
            return r.json()["data"]["hits"]
        except requests.exceptions.RequestException as e:
            logger.error(f"Error querying GDC {endpoint}: {e}")
            raise GDCRequestError(f"GDC {endpoint} request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected GDC {endpoint} response: {e}")
            raise GDCRequestError(f"Unexpected GDC {endpoint} response: {e}") from e

    def _search(self, endpoint, filters, fields, expand=None):
        """Run a search and follow pagination until a short page comes back."""
        payload = {
            "filters": filters,
            "fields": ",".join(fields),
            "format": "JSON",
            "size": self.page_size,
        }
        if expand:
            payload["expand"] = ",".join(expand)

        hits = []
        offset = 0
        while True:
            page = self._post(endpoint, {**payload, "from": offset})
            hits.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size
        logger.info(f"GDC {endpoint} search returned {len(hits)} hits")
        return hits

    def search_files(self, filters, fields):
        return self._search('files', filters, fields)

    def search_cases(self, filters, fields, expand=None):
        return self._search('cases', filters, fields, expand=expand)

    def query_expression_files(self, project_id, workflow=None):
        """Open-access RNA-seq gene count files with their sample barcodes."""
        filters = build_filters(project_id, {
            'data_category': 'Transcriptome Profiling',
            'data_type': 'Gene Expression Quantification',
            'analysis.workflow_type': workflow or GDC_CONFIG['expression_workflow'],
            'access': 'open',
        })
        return self.search_files(filters, EXPRESSION_FIELDS)

    def query_mutation_files(self, project_id):
        """Open-access masked somatic mutation MAF files."""
        filters = build_filters(project_id, {
            'data_category': 'Simple Nucleotide Variation',
            'data_type': 'Masked Somatic Mutation',
            'access': 'open',
        })
        return self.search_files(filters, MUTATION_FIELDS)

    def fetch_clinical(self, project_id):
        """Case records with demographic and diagnoses expanded."""
        filters = build_filters(project_id, project_field='project.project_id')
        return self.search_cases(filters, CASE_FIELDS, expand=CASE_EXPAND)

    def download_file(self, file_id, file_name, dest_dir, overwrite=False):
        """
        Download one file by UUID into `dest_dir`.

        Files already present on disk are not downloaded again unless
        `overwrite` is set.

        Returns:
            str: Path of the downloaded file.
        """
        os.makedirs(dest_dir, exist_ok=True)
        path = os.path.join(dest_dir, file_name)
        if os.path.exists(path) and not overwrite:
            logger.debug(f"Using cached {path}")
            return path

        url = f"{self.base_url}/data/{file_id}"
        partial_path = f"{path}.part"
        try:
            with self.session.get(url, stream=True, timeout=self.download_timeout) as r:
                r.raise_for_status()
                with open(partial_path, 'wb') as fh:
                    for chunk in r.iter_content(chunk_size=GDC_CONFIG['chunk_size']):
                        if chunk:
                            fh.write(chunk)
            os.replace(partial_path, path)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error downloading file {file_id}: {e}")
            raise GDCRequestError(f"Download of {file_id} failed: {e}") from e
        finally:
            if os.path.exists(partial_path):
                os.remove(partial_path)

        logger.info(f"Downloaded {file_name} to {path}")
        return path

    def download_files(self, file_hits, dest_dir, overwrite=False):
        """Download every hit; returns a mapping of file_id -> local path."""
        paths = {}
        for hit in file_hits:
            paths[hit['file_id']] = self.download_file(hit['file_id'], hit['file_name'],
                                                       dest_dir, overwrite=overwrite)
        logger.info(f"{len(paths)} files available in {dest_dir}")
        return paths
