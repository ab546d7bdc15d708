"""
LGG Main Script
Runs the TCGA-LGG walkthrough: download, normalize, annotate, plot
"""

import argparse
import glob
import logging
import os
import sys
import traceback

from .config import CONFIG, resolve_path
from .data_access.gdc_client import GDCClient
from .data_processing.clinical import flatten_clinical, merge_sample_clinical
from .data_processing.expression import (
    build_count_matrix,
    build_sample_table,
    collapse_to_symbols,
    load_gene_names
)
from .data_processing.identity_join import build_annotation_table
from .data_processing.mutations import filter_nonsynonymous, load_maf_files
from .data_processing.utils import load_table_with_logging
from .expression_analysis.heatmaps import plot_expression_heatmap, plot_sample_correlation_heatmap
from .expression_analysis.normalization import (
    filter_low_counts,
    sample_correlation,
    select_top_variable_genes,
    variance_stabilize
)
from .mutation_analysis.plots import plot_lollipop, plot_oncoplot, plot_somatic_interactions
from .mutation_analysis.summary import gene_summary, sample_summary, somatic_interactions
from .utils.shared_functions import save_results, setup_logging

logger = logging.getLogger(__name__)

# Clinical fields shown next to the mutation flags on heatmaps
ANNOTATION_FIELDS = ['sample_type', 'tumor_grade', 'gender']

MAF_PATTERNS = ['*.maf', '*.maf.gz']


class LGGAnalysis:
    """Downloads TCGA-LGG data and produces the walkthrough's tables and figures"""

    def __init__(self, base_path, project_id=None, genes=None, client=None):
        self.base_path = base_path
        self.project_id = project_id or CONFIG['project_id']
        self.genes = list(genes or CONFIG['genes'])
        self.client = client or GDCClient()

        # Define data and output directories
        self.expression_dir = resolve_path(self.base_path, 'expression_dir')
        self.mutation_dir = resolve_path(self.base_path, 'mutation_dir')
        self.output_dir = resolve_path(self.base_path, 'output_dir')
        self.plots_dir = os.path.join(self.output_dir, "plots")
        self.results_dir = os.path.join(self.output_dir, "results")

        for directory in [self.expression_dir, self.mutation_dir, self.plots_dir, self.results_dir]:
            os.makedirs(directory, exist_ok=True)

        self.samples = None
        self.clinical = None
        self.sample_info = None
        self.counts = None
        self.normalized = None
        self.top_variable = None
        self.maf = None
        self.annotation = None

    def download_data(self, overwrite=False):
        """Fetch expression counts, MAFs and clinical records from the GDC."""
        logger.info(f"Querying GDC for {self.project_id} files...")
        expression_hits = self.client.query_expression_files(self.project_id)
        samples = build_sample_table(expression_hits)
        kept_files = set(samples['file_id'])
        paths = self.client.download_files(
            [hit for hit in expression_hits if hit['file_id'] in kept_files],
            self.expression_dir, overwrite=overwrite
        )
        samples['path'] = samples['file_id'].map(paths)
        self.samples = samples
        save_results(samples, self.results_dir, 'samples.csv', index=False)

        mutation_hits = self.client.query_mutation_files(self.project_id)
        self.client.download_files(mutation_hits, self.mutation_dir, overwrite=overwrite)

        self.clinical = flatten_clinical(self.client.fetch_clinical(self.project_id))
        save_results(self.clinical, self.results_dir, 'clinical.csv', index=False)

    def load_expression(self):
        """Build the gene-symbol x sample count matrix from downloaded STAR files."""
        if self.samples is None:
            self.samples = load_table_with_logging(
                os.path.join(self.results_dir, 'samples.csv'),
                required_columns=['sample_id', 'barcode', 'path']
            )
        paths = dict(zip(self.samples['sample_id'], self.samples['path']))
        counts = build_count_matrix(paths)
        gene_names = load_gene_names(next(iter(paths.values())))
        self.counts = collapse_to_symbols(counts, gene_names)
        return self.counts

    def load_clinical(self):
        """Attach clinical variables to every expression sample."""
        if self.clinical is None:
            self.clinical = load_table_with_logging(
                os.path.join(self.results_dir, 'clinical.csv'),
                required_columns=['patient_id']
            )
        self.sample_info = merge_sample_clinical(self.samples, self.clinical)
        save_results(self.sample_info, self.results_dir, 'sample_clinical.csv', index=False)
        return self.sample_info

    def load_mutations(self):
        """Read every downloaded MAF and keep non-synonymous calls."""
        paths = sorted(path for pattern in MAF_PATTERNS
                       for path in glob.glob(os.path.join(self.mutation_dir, pattern)))
        self.maf = filter_nonsynonymous(load_maf_files(paths))
        return self.maf

    def normalize_expression(self, method=None, top_genes=None):
        filtered = filter_low_counts(self.counts)
        self.normalized = variance_stabilize(filtered, method=method)
        self.top_variable = select_top_variable_genes(self.normalized, top_genes)
        save_results(self.normalized, self.results_dir, 'normalized_expression.csv')
        return self.normalized

    def annotate_samples(self):
        """Mutation flags per sample plus selected clinical fields."""
        annotation = build_annotation_table(self.samples, self.maf, self.genes)
        if self.sample_info is not None:
            fields = [col for col in ANNOTATION_FIELDS if col in self.sample_info.columns]
            clinical = self.sample_info.set_index('sample_id')[fields]
            annotation = clinical.join(annotation, how='right')
        self.annotation = annotation
        save_results(annotation, self.results_dir, 'sample_annotation.csv')
        return annotation

    def plot_heatmaps(self):
        plot_expression_heatmap(
            self.top_variable, 'top_variable_genes_heatmap', self.plots_dir,
            annotation=self.annotation,
            title=f"{self.project_id}: top {len(self.top_variable)} variable genes"
        )
        plot_sample_correlation_heatmap(
            sample_correlation(self.top_variable), 'sample_correlation_heatmap', self.plots_dir,
            annotation=self.annotation
        )

    def plot_mutations(self):
        save_results(gene_summary(self.maf), self.results_dir, 'mutation_gene_summary.csv')
        save_results(sample_summary(self.maf), self.results_dir, 'mutation_sample_summary.csv')

        plot_oncoplot(self.maf, 'oncoplot', self.plots_dir)

        for gene in self.genes:
            try:
                plot_lollipop(self.maf, gene, f"lollipop_{gene}", self.plots_dir)
            except ValueError as e:
                logger.warning(f"Skipping lollipop plot for {gene}: {e}")

        interactions = somatic_interactions(self.maf)
        save_results(interactions, self.results_dir, 'somatic_interactions.csv', index=False)
        if not interactions.empty:
            plot_somatic_interactions(interactions, 'somatic_interactions', self.plots_dir)

    def run(self, download=True, method=None, top_genes=None):
        """Run every step of the walkthrough in order."""
        if download:
            self.download_data()
        self.load_expression()
        self.load_clinical()
        self.load_mutations()
        self.normalize_expression(method=method, top_genes=top_genes)
        self.annotate_samples()
        self.plot_heatmaps()
        self.plot_mutations()
        logger.info(f"Analysis complete. Results in {self.output_dir}")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Run the TCGA-LGG expression and mutation walkthrough')
    parser.add_argument('--base-path', type=str, default=None,
                        help='Base path for data and output (default: current directory)')
    parser.add_argument('--project', type=str, default=CONFIG['project_id'],
                        help='GDC project ID (default: %(default)s)')
    parser.add_argument('--genes', nargs='+', default=CONFIG['genes'],
                        help='Genes to annotate samples with')
    parser.add_argument('--top-genes', type=int, default=CONFIG['top_variable_genes'],
                        help='Number of most variable genes in the heatmap (default: %(default)s)')
    parser.add_argument('--normalization', choices=['log2', 'vst'],
                        default=CONFIG['normalization']['method'],
                        help='Variance-stabilising transform (default: %(default)s)')
    parser.add_argument('--skip-download', action='store_true',
                        help='Reuse previously downloaded data')
    parser.add_argument('--log-level', default='INFO',
                        help='Logging level (default: %(default)s)')
    return parser.parse_args(argv)


def main(argv=None):
    """Main function to run the LGG walkthrough."""
    args = parse_args(argv)
    base_path = args.base_path or os.path.abspath(os.getcwd())

    setup_logging(args.log_level,
                  log_file=os.path.join(resolve_path(base_path, 'output_dir'), 'processing_log.txt'))

    analysis = LGGAnalysis(base_path, project_id=args.project, genes=args.genes)
    try:
        analysis.run(download=not args.skip_download, method=args.normalization,
                     top_genes=args.top_genes)
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        logger.debug(traceback.format_exc())
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
