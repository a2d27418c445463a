#!/usr/bin/env python3
"""
Chart Generator for Benchmark Results
Generates grouped bar charts comparing single proofs and multiproofs per whitelist size.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

# Series display names
SERIES_NAMES = {
    'single_proof_bytes': 'Single Proofs',
    'multiproof_bytes': 'Multiproof',
    'single_calldata_gas': 'Single Proofs',
    'multiproof_calldata_gas': 'Multiproof',
}


def create_grouped_bar_chart(summary, columns, title, ylabel, filename, output_dir):
    """
    Create a grouped bar chart with one group per whitelist size.

    Args:
        summary: DataFrame with a 'leaves' column and the plotted columns
        columns: Column names, one bar per column in each group
        title: Chart title
        ylabel: Y-axis label
        filename: Output filename
        output_dir: Output directory path
    """
    if summary.empty:
        print(f"Warning: No data for {title}")
        return None

    sizes = summary['leaves'].tolist()
    x = np.arange(len(sizes))
    width = 0.8 / len(columns)

    fig, ax = plt.subplots(figsize=(10, 6))
    colors = plt.cm.Set3(np.linspace(0, 1, len(columns)))

    for i, column in enumerate(columns):
        values = summary[column].to_numpy(dtype=float)
        bars = ax.bar(x + (i - (len(columns) - 1) / 2) * width, values, width,
                      color=colors[i], label=SERIES_NAMES.get(column, column))
        for bar, value in zip(bars, values):
            ax.text(bar.get_x() + bar.get_width() / 2., bar.get_height(),
                    f'{value:,.0f}', ha='center', va='bottom', fontsize=9)

    ax.set_xlabel('Whitelist Size (entries)', fontsize=12, fontweight='bold')
    ax.set_ylabel(ylabel, fontsize=12, fontweight='bold')
    ax.set_title(title, fontsize=14, fontweight='bold', pad=20)
    ax.set_xticks(x)
    ax.set_xticklabels([f'{s:,}' for s in sizes])
    ax.grid(axis='y', alpha=0.3, linestyle='--')
    ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda v, p: f'{int(v):,}'))
    ax.legend()

    plt.tight_layout()

    output_path = Path(output_dir) / filename
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    print(f"✓ Generated: {output_path}")
    plt.close(fig)
    return output_path


def create_build_time_chart(summary, output_dir, filename='construction_time.png'):
    """Line chart of tree construction time against whitelist size."""
    if summary.empty:
        print("Warning: No build time data found")
        return None

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(summary['leaves'], summary['build_time'] * 1000, marker='o')
    ax.set_xlabel('Whitelist Size (entries)', fontsize=12, fontweight='bold')
    ax.set_ylabel('Construction Time (ms)', fontsize=12, fontweight='bold')
    ax.set_title('Tree Construction Time', fontsize=14, fontweight='bold', pad=20)
    ax.grid(alpha=0.3, linestyle='--')

    plt.tight_layout()

    output_path = Path(output_dir) / filename
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    print(f"✓ Generated: {output_path}")
    plt.close(fig)
    return output_path


def generate_all_charts(summary, output_dir):
    """Write every chart for a benchmark summary; return the written paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = [
        create_grouped_bar_chart(summary, ['single_proof_bytes', 'multiproof_bytes'],
                                 'Proof Size: Single Proofs vs Multiproof', 'Proof Size (bytes)',
                                 'proof_size.png', output_dir),
        create_grouped_bar_chart(summary, ['single_calldata_gas', 'multiproof_calldata_gas'],
                                 'Estimated Calldata Gas', 'Gas', 'calldata_gas.png', output_dir),
        create_build_time_chart(summary, output_dir),
    ]
    return [p for p in paths if p is not None]
