# neat-python configuration templates, one per encoding variant.
# Section headers must match the class names handed to neat.Config.

neat_template = """
[NEAT]
fitness_criterion     = max
fitness_threshold     = 1e9
no_fitness_termination = True
pop_size              = {pop_size}
reset_on_extinction   = False

[{genome_section}]
num_inputs            = {num_inputs}
num_hidden            = 0
num_outputs           = {num_outputs}
initial_connection    = partial_direct {connection_density}
feed_forward          = True

activation_default      = {activation_default}
activation_mutate_rate  = {activation_mutate_rate}
activation_options      = {activation_options}

aggregation_default     = sum
aggregation_mutate_rate = 0.0
aggregation_options     = sum

bias_init_mean          = 0.0
bias_init_stdev         = 1.0
bias_init_type          = gaussian
bias_max_value          = 30.0
bias_min_value          = -30.0
bias_mutate_power       = 0.5
bias_mutate_rate        = 0.7
bias_replace_rate       = 0.1

response_init_mean      = 1.0
response_init_stdev     = 0.0
response_init_type      = gaussian
response_max_value      = 30.0
response_min_value      = -30.0
response_mutate_power   = 0.0
response_mutate_rate    = 0.0
response_replace_rate   = 0.0

weight_init_mean        = 0.0
weight_init_stdev       = 1.0
weight_init_type        = gaussian
weight_max_value        = 30.0
weight_min_value        = -30.0
weight_mutate_power     = 0.5
weight_mutate_rate      = 0.8
weight_replace_rate     = 0.1

enabled_default         = True
enabled_mutate_rate     = 0.01
enabled_rate_to_true_add  = 0.0
enabled_rate_to_false_add = 0.0

single_structural_mutation = False
structural_mutation_surer  = default

compatibility_disjoint_coefficient = 1.0
compatibility_weight_coefficient   = 0.5

conn_add_prob           = 0.5
conn_delete_prob        = 0.2
node_add_prob           = 0.2
node_delete_prob        = 0.1

[DefaultSpeciesSet]
compatibility_threshold = 3.0

[DefaultStagnation]
species_fitness_func = max
max_stagnation       = 20
species_elitism      = 2

[DefaultReproduction]
elitism            = 2
survival_threshold = 0.2
min_species_size   = 2
"""

# Controllers drive wheels in [-1, 1]
controller_activation = {
    "activation_default": "tanh",
    "activation_mutate_rate": 0.0,
    "activation_options": "tanh",
}

# CPPNs draw on the usual pattern-producing function set
cppn_activation = {
    "activation_default": "tanh",
    "activation_mutate_rate": 0.2,
    "activation_options": "tanh sigmoid sin gauss abs identity",
}
